"""Tests for docmost_sync.reconcile.fsops: traversal and destination-wins merge."""

from docmost_sync.reconcile.actions import ActionKind, PassResult
from docmost_sync.reconcile.fsops import (
    copy_missing,
    deepest_first,
    is_empty_dir,
    list_directories,
    list_markdown_files,
    merge_into,
    read_document,
    remove_empty_parents,
    write_document,
)


class TestTraversal:
    def test_listings_are_sorted(self, tmp_path, write_tree):
        write_tree(tmp_path, {"b/two.md": "", "a/one.md": "", "a/image.png": b"", "c.MD": ""})
        assert list_directories(tmp_path) == [tmp_path / "a", tmp_path / "b"]
        assert list_markdown_files(tmp_path) == [
            tmp_path / "c.MD",
            tmp_path / "a" / "one.md",
            tmp_path / "b" / "two.md",
        ]

    def test_deepest_first(self, tmp_path):
        paths = [tmp_path / "a", tmp_path / "a" / "b" / "c", tmp_path / "a" / "b"]
        assert deepest_first(paths) == [
            tmp_path / "a" / "b" / "c",
            tmp_path / "a" / "b",
            tmp_path / "a",
        ]

    def test_is_empty_dir(self, tmp_path):
        (tmp_path / "empty").mkdir()
        assert is_empty_dir(tmp_path / "empty")
        assert not is_empty_dir(tmp_path)
        assert not is_empty_dir(tmp_path / "missing")


class TestMergeInto:
    def test_destination_wins_on_conflict(self, tmp_path, write_tree):
        write_tree(
            tmp_path,
            {
                "src/same.md": "from source",
                "src/only-src.md": "moved",
                "src/sub/deep.md": "deep source",
                "src/sub/new.md": "new",
                "dst/same.md": "from destination",
                "dst/sub/deep.md": "deep destination",
            },
        )
        result = PassResult("merge", tmp_path)

        assert merge_into(tmp_path / "src", tmp_path / "dst", result)

        assert not (tmp_path / "src").exists()
        assert (tmp_path / "dst/same.md").read_text() == "from destination"
        assert (tmp_path / "dst/sub/deep.md").read_text() == "deep destination"
        assert (tmp_path / "dst/only-src.md").read_text() == "moved"
        assert (tmp_path / "dst/sub/new.md").read_text() == "new"
        kinds = [action.kind for action in result.actions]
        assert kinds.count(ActionKind.DISCARD) == 2
        assert kinds[-1] is ActionKind.MERGE
        assert result.warnings == []

    def test_missing_directory_moved_whole(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/files/a.png": b"png", "dst/keep.md": "keep"})
        result = PassResult("merge", tmp_path)
        merge_into(tmp_path / "src", tmp_path / "dst", result)
        assert (tmp_path / "dst/files/a.png").read_bytes() == b"png"
        assert result.actions[0].kind is ActionKind.MOVE

    def test_failure_keeps_source(self, tmp_path, write_tree, monkeypatch):
        write_tree(tmp_path, {"src/a.md": "a", "dst/b.md": "b"})
        result = PassResult("merge", tmp_path)

        def _fail(source, target):
            raise OSError("disk on fire")

        monkeypatch.setattr("docmost_sync.reconcile.fsops.os.rename", _fail)
        assert not merge_into(tmp_path / "src", tmp_path / "dst", result)
        assert (tmp_path / "src/a.md").exists()
        assert "disk on fire" in result.warnings[0]


class TestCopyAndCleanup:
    def test_copy_missing_never_overwrites(self, tmp_path, write_tree):
        write_tree(tmp_path, {"src/a.png": b"new", "src/sub/b.png": b"b", "dst/a.png": b"old"})
        result = PassResult("copy", tmp_path)
        copy_missing(tmp_path / "src", tmp_path / "dst", result)
        assert (tmp_path / "dst/a.png").read_bytes() == b"old"
        assert (tmp_path / "dst/sub/b.png").read_bytes() == b"b"
        assert (tmp_path / "src/a.png").exists()
        assert [action.kind for action in result.actions] == [ActionKind.COPY]

    def test_remove_empty_parents_stops_at_root(self, tmp_path, write_tree):
        write_tree(tmp_path, {"a/keep.md": ""})
        (tmp_path / "a/b/c").mkdir(parents=True)
        result = PassResult("cleanup", tmp_path)
        remove_empty_parents(tmp_path / "a/b/c", tmp_path, result)
        assert not (tmp_path / "a/b").exists()
        assert (tmp_path / "a").is_dir()
        assert len(result.actions) == 2


def test_documents_keep_line_endings(tmp_path):
    path = tmp_path / "doc.md"
    write_document(path, "line one\r\nline two\r\n")
    assert path.read_bytes() == b"line one\r\nline two\r\n"
    assert read_document(path) == "line one\r\nline two\r\n"
