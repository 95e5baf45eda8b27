"""Shared pytest fixtures for docmost-sync tests."""

import io
import zipfile
from pathlib import Path

import pytest

from docmost_sync import config as config_module
from docmost_sync.docmost.models import Space
from docmost_sync.errors import RetrievalError
from docmost_sync.local.models import PageNode, SpaceMetadata

ENV_VARS = (
    "DOCMOST_BASE_URL",
    "DOCMOST_EMAIL",
    "DOCMOST_PASSWORD",
    "OUTPUT_DIR",
    "SYNC_INTERVAL",
    "HTTP_PORT",
    "LOCK_FILE",
    "LOG_LEVEL",
)


def make_zip(files):
    """Build an in-memory ZIP archive from a ``{path: text or bytes}`` mapping."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            if isinstance(content, str):
                content = content.encode("utf-8")
            archive.writestr(name, content)
    return buffer.getvalue()


class FakeDocmostClient:
    """In-memory stand-in for DocmostClient with the same public surface."""

    def __init__(self, spaces=None, archives=None, pages=None, children=None):
        self.spaces = spaces or []
        self.archives = archives or {}
        self.pages = pages or {}
        self.children = children or {}
        self.logged_in = False
        self.closed = False

    def login(self):
        self.logged_in = True

    def list_spaces(self):
        return list(self.spaces)

    def export_space_zip(self, space_id):
        archive = self.archives.get(space_id)
        if isinstance(archive, Exception):
            raise archive
        if archive is None:
            raise RetrievalError(f"export of {space_id} failed", status_code=500)
        return archive

    def list_sidebar_pages(self, space_id):
        records = self.pages.get(space_id)
        if isinstance(records, Exception):
            raise records
        return list(records or [])

    def list_child_pages(self, page_id):
        records = self.children.get(page_id)
        if isinstance(records, Exception):
            raise records
        return list(records or [])

    def close(self):
        self.closed = True


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Remove configuration environment variables and default config files."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        config_module,
        "DEFAULT_CONFIG_PATHS",
        (tmp_path / "missing-a.toml", tmp_path / "missing-b.toml"),
    )


@pytest.fixture
def write_tree():
    """Write ``{relative path: text}`` below a root directory."""

    def _write(root: Path, files):
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_bytes(content.encode("utf-8"))
        return root

    return _write


@pytest.fixture
def write_metadata():
    """Write a ``_metadata.json`` holding ``pages`` into ``root``."""

    def _write(root: Path, pages):
        metadata = SpaceMetadata(
            id="space-1",
            name="Docs",
            slug="docs",
            created_at="2024-01-01T00:00:00Z",
            updated_at="2024-01-02T00:00:00Z",
            pages=pages,
            total_pages=sum(1 for page in pages for _ in page.iter_subtree()),
        )
        root.mkdir(parents=True, exist_ok=True)
        metadata.save(root)
        return metadata

    return _write


@pytest.fixture
def snapshot_tree():
    """Return ``{relative posix path: bytes}`` for every file below ``root``."""

    def _snapshot(root: Path):
        return {
            path.relative_to(root).as_posix(): path.read_bytes()
            for path in sorted(root.rglob("*"))
            if path.is_file()
        }

    return _snapshot


@pytest.fixture
def docs_space():
    return Space(
        id="space-1",
        name="Docs",
        slug="docs",
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-01-02T00:00:00Z",
    )


@pytest.fixture
def docs_client(docs_space):
    """A fake client serving one space with a Hangul page and an English page."""
    archive = make_zip(
        {
            "문서.md": "# 문서\n\nUse {name} here.\n",
            "문서/하위.md": "Child <> text\n",
            "Guide.md": "Read the guide.\n",
        }
    )
    pages = [
        {"id": "p1", "title": "문서", "position": "a0", "hasChildren": True},
        {"id": "p3", "title": "Guide", "position": "a1", "hasChildren": False},
    ]
    children = {
        "p1": [
            {"id": "p2", "title": "하위", "position": "a0", "parentPageId": "p1"},
        ]
    }
    return FakeDocmostClient(
        spaces=[docs_space],
        archives={docs_space.id: archive},
        pages={docs_space.id: pages},
        children=children,
    )


def page(id, title, position, file_path="", children=None):
    return PageNode(
        id=id,
        title=title,
        position=position,
        file_path=file_path,
        has_children=bool(children),
        children=list(children or []),
    )


@pytest.fixture
def make_page():
    return page


@pytest.fixture
def build_zip():
    return make_zip


@pytest.fixture
def fake_client_cls():
    return FakeDocmostClient
