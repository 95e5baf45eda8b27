"""Removal of the empty "untitled" pages Docmost creates for unnamed drafts."""

from __future__ import annotations

import re
from pathlib import Path

from .actions import ActionKind, PassResult
from .escaping import split_front_matter
from .fsops import iter_tree, read_document

_UNTITLED_NAME_RE = re.compile(r"untitled(?: \d+)?\.md", re.IGNORECASE)
_UNTITLED_CONTENT_RE = re.compile(r"# untitled(?: \(\d+\))?")


def is_placeholder_name(name: str) -> bool:
    return _UNTITLED_NAME_RE.fullmatch(name) is not None


def is_placeholder_content(text: str) -> bool:
    """Return ``True`` when ``text`` is nothing but the placeholder heading.

    A leading front matter block is ignored.
    """

    _, body = split_front_matter(text)
    return _UNTITLED_CONTENT_RE.fullmatch(body.strip()) is not None


def prune_placeholders(root: Path) -> PassResult:
    result = PassResult("prune placeholders", root)
    candidates = [
        directory / name
        for directory, _, filenames in iter_tree(root)
        for name in filenames
        if is_placeholder_name(name)
    ]
    for path in candidates:
        try:
            text = read_document(path)
        except (OSError, UnicodeDecodeError) as exc:
            result.warn(f"Failed to read file {path}: {exc}")
            continue
        if not is_placeholder_content(text):
            continue
        try:
            path.unlink()
        except OSError as exc:
            result.warn(f"Failed to remove file {path}: {exc}")
            continue
        result.record(ActionKind.DELETE, path, detail="untitled placeholder")
    return result
