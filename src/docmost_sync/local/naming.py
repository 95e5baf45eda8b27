"""Utilities for mapping Docmost titles and exported paths to filesystem-friendly names."""

from __future__ import annotations

import re

from .transliterate import DELETED_CHARACTERS, SUBSTITUTIONS, transliterate

MARKDOWN_SUFFIX = ".md"

_HYPHEN_RUN_RE = re.compile(r"-{2,}")

# Characters the exporter cannot keep in a single path segment.
_UNSAFE_SEGMENT_CHARACTERS: dict[str, str] = {
    "/": "-",
    "\\": "-",
    ":": "-",
    "*": "",
    "?": "",
    '"': "",
    "<": "",
    ">": "",
    "|": "",
}
_UNSAFE_SEGMENT_TABLE = str.maketrans(_UNSAFE_SEGMENT_CHARACTERS)


def sanitize_filename(title: str) -> str:
    """Return ``title`` as the exporter writes it into a single file or folder name."""

    return title.translate(_UNSAFE_SEGMENT_TABLE).strip()


def sanitize_dir_name(name: str) -> str:
    """Return the publish base name for a space called ``name``."""

    return sanitize_filename(name)


def cleanup_hyphens(value: str) -> str:
    """Collapse consecutive hyphens and strip them from both ends."""

    return _HYPHEN_RUN_RE.sub("-", value).strip("-")


def is_markdown(name: str) -> bool:
    return name.lower().endswith(MARKDOWN_SUFFIX)


def split_markdown_name(name: str) -> tuple[str, str]:
    """Split ``name`` into stem and ``.md`` extension (case preserved).

    Non-Markdown names are returned whole with an empty extension.
    """

    if is_markdown(name):
        cut = len(name) - len(MARKDOWN_SUFFIX)
        return name[:cut], name[cut:]
    return name, ""


def transliterate_segment(name: str) -> str:
    """Transliterate one path segment, keeping a Markdown extension intact."""

    stem, extension = split_markdown_name(name)
    return cleanup_hyphens(transliterate(stem)) + extension


def transliterate_path(relative_path: str) -> str:
    """Transliterate every segment of a ``/`` separated relative path."""

    return "/".join(transliterate_segment(part) for part in relative_path.split("/"))


def needs_sanitizing(name: str) -> bool:
    """Return ``True`` when ``name`` holds a character the sanitization tables act on."""

    for char in name:
        if char in DELETED_CHARACTERS or char in SUBSTITUTIONS or not char.isascii():
            return True
    return False


def sanitize_name(name: str) -> str:
    """Return an ASCII-safe version of ``name``.

    The transliteration tables are applied first; any code point still outside
    ASCII is then written as ``U`` followed by its hexadecimal value. A
    Markdown extension keeps its original case.
    """

    stem, extension = split_markdown_name(name)
    converted = "".join(
        char if char.isascii() else f"U{ord(char):04X}" for char in transliterate(stem)
    )
    return cleanup_hyphens(converted) + extension
