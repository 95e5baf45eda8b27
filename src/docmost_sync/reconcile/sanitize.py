"""Final name clean-up for folders and Markdown files."""

from __future__ import annotations

import os
from pathlib import Path

from docmost_sync.local.naming import is_markdown, needs_sanitizing, sanitize_name, split_markdown_name

from .actions import ActionKind, PassResult
from .fsops import deepest_first, iter_tree, list_markdown_files, merge_into


def sanitize_residual_characters(root: Path) -> PassResult:
    """Rename folders and ``.md`` files whose names still hold unsafe characters.

    Other files keep their names because documents link to them verbatim.
    Folder conflicts merge into the existing folder; file conflicts are
    skipped with a warning.
    """

    result = PassResult("sanitize residual characters", root)
    candidates: list[Path] = []
    for directory, dirnames, filenames in iter_tree(root):
        candidates.extend(directory / name for name in dirnames if needs_sanitizing(name))
        candidates.extend(
            directory / name
            for name in filenames
            if is_markdown(name) and needs_sanitizing(name)
        )

    for path in deepest_first(candidates):
        if not os.path.lexists(path):
            continue
        new_name = sanitize_name(path.name)
        if new_name == path.name:
            continue
        if not split_markdown_name(new_name)[0]:
            result.warn(f"Sanitized name of {path} is empty, skipping")
            continue
        target = path.with_name(new_name)
        if target.exists():
            if path.is_dir():
                merge_into(path, target, result)
            else:
                result.warn(f"Sanitized file already exists, skipping: {target}")
            continue
        try:
            os.rename(path, target)
        except OSError as exc:
            result.warn(f"Failed to rename {path} to {target}: {exc}")
            continue
        result.record(ActionKind.RENAME, path, target)
    return result


def strip_space_before_extension(root: Path) -> PassResult:
    """Rename ``name .md`` to ``name.md``."""

    result = PassResult("strip space before extension", root)
    for path in deepest_first(list_markdown_files(root)):
        stem, extension = split_markdown_name(path.name)
        trimmed = stem.rstrip()
        if trimmed == stem or not trimmed:
            continue
        target = path.with_name(trimmed + extension)
        if target.exists():
            result.warn(f"Target file already exists, skipping: {target}")
            continue
        try:
            os.rename(path, target)
        except OSError as exc:
            result.warn(f"Failed to rename {path} to {target}: {exc}")
            continue
        result.record(ActionKind.RENAME, path, target)
    return result
