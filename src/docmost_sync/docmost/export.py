"""Turn a Docmost space export into a :class:`Snapshot`."""

from __future__ import annotations

import io
import logging
import posixpath
import zipfile
import zlib
from typing import TYPE_CHECKING

from docmost_sync.errors import RetrievalError
from docmost_sync.local.models import PageNode, SpaceMetadata, sort_by_position
from docmost_sync.local.naming import MARKDOWN_SUFFIX, sanitize_filename

from .models import Snapshot, Space

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .client import DocmostClient

logger = logging.getLogger(__name__)


def extract_zip(data: bytes) -> dict[str, bytes]:
    """Return every regular file of a ZIP archive keyed by its ``/`` separated path."""

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, OSError) as exc:
        raise RetrievalError(f"failed to open zip: {exc}") from exc

    blobs: dict[str, bytes] = {}
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            try:
                content = archive.read(info)
            except (zipfile.BadZipFile, OSError, RuntimeError, zlib.error) as exc:
                # RuntimeError covers encrypted members.
                raise RetrievalError(f"failed to read {info.filename}: {exc}") from exc
            blobs[info.filename.replace("\\", "/")] = content
    return blobs


def find_file_path(title: str, blobs: dict[str, bytes]) -> str:
    """Return the exported Markdown path for a page title, or ``""``.

    A file matches when its base name (without ``.md``) equals the title or
    the title as the exporter sanitizes it. Paths are checked in sorted order
    so the result is stable when several files match.
    """

    sanitized = sanitize_filename(title)
    for path in sorted(blobs):
        if not path.endswith(MARKDOWN_SUFFIX):
            continue
        base = posixpath.basename(path)[: -len(MARKDOWN_SUFFIX)]
        if base == sanitized or base == title:
            return path
    return ""


class _TreeBuilder:
    def __init__(self, client: "DocmostClient", blobs: dict[str, bytes]) -> None:
        self.client = client
        self.blobs = blobs
        self.count = 0

    def build(self, record: dict) -> PageNode:
        self.count += 1
        node = PageNode(
            id=str(record["id"]),
            slug_id=str(record.get("slugId") or ""),
            title=str(record.get("title") or ""),
            icon=record.get("icon"),
            position=str(record.get("position") or ""),
            parent_page_id=record.get("parentPageId"),
            has_children=bool(record.get("hasChildren", False)),
        )
        node.file_path = find_file_path(node.title, self.blobs)
        if node.has_children:
            try:
                children = self.client.list_child_pages(node.id)
            except RetrievalError as exc:
                logger.warning("Could not list children of page %r: %s", node.title, exc)
            else:
                node.children = [self.build(child) for child in children]
                node.sort_children()
        return node


def build_page_tree(
    client: "DocmostClient", space: Space, blobs: dict[str, bytes]
) -> tuple[list[PageNode], int]:
    """Fetch the page tree of ``space`` and resolve each page's export file.

    Returns the root pages ordered by position and the total number of pages
    visited. Failing to list the root pages raises :class:`RetrievalError`;
    failing to list the children of one page leaves that page's children empty.
    Records without the expected fields are reported as a :class:`RetrievalError`.
    """

    builder = _TreeBuilder(client, blobs)
    records = client.list_sidebar_pages(space.id)
    try:
        roots = sort_by_position(builder.build(record) for record in records)
    except (KeyError, TypeError, AttributeError) as exc:
        raise RetrievalError(f"unexpected page record in space {space.name}: {exc!r}") from exc
    return roots, builder.count


def export_space(client: "DocmostClient", space: Space) -> Snapshot:
    """Download and unpack one space and attach its page tree metadata."""

    blobs = extract_zip(client.export_space_zip(space.id))
    snapshot = Snapshot(space=space, blobs=blobs)
    try:
        pages, total = build_page_tree(client, space, blobs)
    except RetrievalError as exc:
        logger.warning("Failed to get metadata for space %s: %s", space.name, exc)
        return snapshot

    snapshot.pages = pages
    snapshot.total_pages = total
    snapshot.metadata = SpaceMetadata(
        id=space.id,
        name=space.name,
        slug=space.slug,
        description=space.description,
        created_at=space.created_at,
        updated_at=space.updated_at,
        pages=pages,
        total_pages=total,
    )
    return snapshot
