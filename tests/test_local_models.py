"""Tests for docmost_sync.local.models: page tree and _metadata.json."""

import json

import pytest

from docmost_sync.errors import MetadataError
from docmost_sync.local.models import (
    METADATA_FILENAME,
    PageNode,
    SpaceMetadata,
    sort_by_position,
)


@pytest.fixture
def metadata(make_page):
    child = make_page("p2", "Install/Setup", "a0", "Guide/Install/Setup.md")
    root = make_page("p1", "Guide", "a1", "Guide.md", children=[child])
    other = make_page("p3", "Intro", "a0", "Intro.md")
    return SpaceMetadata(
        id="s1",
        name="Docs",
        slug="docs",
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-01-02T00:00:00Z",
        pages=[root, other],
        total_pages=3,
    )


class TestPageNode:
    def test_iter_subtree_depth_first(self, metadata):
        assert [page.id for page in metadata.pages[0].iter_subtree()] == ["p1", "p2"]

    def test_to_dict_uses_camel_case_and_omits_unset(self, make_page):
        data = make_page("p1", "Guide", "a0").to_dict()
        assert data == {
            "id": "p1",
            "slugId": "",
            "title": "Guide",
            "position": "a0",
            "hasChildren": False,
        }

    def test_from_dict_reads_nested_children(self):
        node = PageNode.from_dict(
            {
                "id": "p1",
                "title": "Guide",
                "position": "a0",
                "hasChildren": True,
                "children": [{"id": "p2", "title": "Child", "position": "a0"}],
                "filePath": "Guide.md",
            }
        )
        assert node.file_path == "Guide.md"
        assert node.children[0].title == "Child"
        assert node.children[0].file_path == ""

    def test_sort_children(self, make_page):
        node = make_page(
            "p", "P", "a0", children=[make_page("b", "B", "a2"), make_page("a", "A", "a1")]
        )
        node.sort_children()
        assert [child.id for child in node.children] == ["a", "b"]


class TestSpaceMetadata:
    def test_iter_pages(self, metadata):
        assert [page.id for page in metadata.iter_pages()] == ["p1", "p2", "p3"]

    def test_find_pages_with_slash(self, metadata):
        assert [page.id for page in metadata.find_pages_with_slash()] == ["p2"]

    def test_save_and_load(self, metadata, tmp_path):
        path = metadata.save(tmp_path)
        assert path == tmp_path / METADATA_FILENAME
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["totalPages"] == 3
        assert data["pages"][0]["children"][0]["filePath"] == "Guide/Install/Setup.md"
        assert SpaceMetadata.load(tmp_path) == metadata

    def test_non_ascii_written_unescaped(self, tmp_path):
        SpaceMetadata(id="s", name="문서", slug="s", created_at="", updated_at="").save(tmp_path)
        assert "문서" in (tmp_path / METADATA_FILENAME).read_text(encoding="utf-8")

    def test_load_missing(self, tmp_path):
        with pytest.raises(MetadataError, match="failed to read"):
            SpaceMetadata.load(tmp_path)

    def test_load_invalid_json(self, tmp_path):
        (tmp_path / METADATA_FILENAME).write_text("{not json", encoding="utf-8")
        with pytest.raises(MetadataError, match="failed to parse"):
            SpaceMetadata.load(tmp_path)

    def test_load_wrong_shape(self, tmp_path):
        (tmp_path / METADATA_FILENAME).write_text("[]", encoding="utf-8")
        with pytest.raises(MetadataError, match="not a JSON object"):
            SpaceMetadata.load(tmp_path)

    def test_load_page_without_id(self, tmp_path):
        (tmp_path / METADATA_FILENAME).write_text(
            json.dumps({"id": "s", "pages": [{"title": "x"}]}), encoding="utf-8"
        )
        with pytest.raises(MetadataError, match="malformed"):
            SpaceMetadata.load(tmp_path)


def test_sort_by_position(make_page):
    pages = [make_page("c", "C", "b"), make_page("a", "A", "a0"), make_page("b", "B", "a1")]
    assert [page.id for page in sort_by_position(pages)] == ["a", "b", "c"]
