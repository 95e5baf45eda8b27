"""Tests for docmost_sync.local.naming."""

import pytest

from docmost_sync.local.naming import (
    cleanup_hyphens,
    is_markdown,
    needs_sanitizing,
    sanitize_dir_name,
    sanitize_filename,
    sanitize_name,
    split_markdown_name,
    transliterate_path,
    transliterate_segment,
)


class TestSanitizeFilename:
    def test_separators_become_hyphens(self):
        assert sanitize_filename("A/B") == "A-B"
        assert sanitize_filename("C:\\temp") == "C--temp"

    def test_reserved_characters_dropped(self):
        assert sanitize_filename('What? "Really" <yes>|*') == "What Really yes"

    def test_surrounding_whitespace_stripped(self):
        assert sanitize_filename("  Notes  ") == "Notes"

    def test_dir_name_matches_filename_rules(self):
        assert sanitize_dir_name("Team: Docs") == "Team- Docs"


class TestHelpers:
    @pytest.mark.parametrize(
        "value, expected",
        [("--a---b--", "a-b"), ("a-b", "a-b"), ("---", ""), ("", "")],
    )
    def test_cleanup_hyphens(self, value, expected):
        assert cleanup_hyphens(value) == expected

    def test_is_markdown_case_insensitive(self):
        assert is_markdown("Doc.md")
        assert is_markdown("Doc.MD")
        assert not is_markdown("image.png")

    def test_split_markdown_name_keeps_extension_case(self):
        assert split_markdown_name("Doc.MD") == ("Doc", ".MD")
        assert split_markdown_name("photo.png") == ("photo.png", "")


class TestTransliteratePaths:
    def test_segment_keeps_extension(self):
        assert transliterate_segment("하위 문서.md") == "hawi munseo.md"

    def test_segment_collapses_hyphens(self):
        assert transliterate_segment("A & B") == "A -and- B"
        assert transliterate_segment("&&") == "and-and"

    def test_path(self):
        assert transliterate_path("문서/하위.md") == "munseo/hawi.md"

    def test_ascii_path_unchanged(self):
        assert transliterate_path("docs/files/image.png") == "docs/files/image.png"


class TestSanitizeName:
    def test_needs_sanitizing(self):
        assert needs_sanitizing("R&D.md")
        assert needs_sanitizing("café")
        assert needs_sanitizing("(draft)")
        assert not needs_sanitizing("release notes.md")

    def test_non_ascii_written_as_code_point(self):
        assert sanitize_name("café.md") == "cafU00E9.md"

    def test_tables_applied_before_escaping(self):
        assert sanitize_name("(draft) R&D.md") == "draft R-and-D.md"

    def test_hangul_romanized(self):
        assert sanitize_name("메모") == "memo"
