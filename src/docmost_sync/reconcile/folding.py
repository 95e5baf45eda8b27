"""Passes that fold two filesystem entries with the same logical name into one."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from docmost_sync.local.naming import MARKDOWN_SUFFIX, transliterate_segment
from docmost_sync.local.transliterate import contains_hangul

from .actions import ActionKind, PassResult
from .fsops import FILES_DIRNAME, copy_missing, deepest_first, list_directories, merge_into

logger = logging.getLogger(__name__)


def fold_same_name_pairs(root: Path) -> PassResult:
    """Move ``D.md`` into ``D/`` wherever both exist side by side.

    The attachments folder next to ``D.md`` is copied into ``D/files`` first
    so relative ``files/...`` links keep resolving after the move.
    """

    result = PassResult("fold same-name pairs", root)
    for directory in list_directories(root):
        if not directory.is_dir():
            continue
        document = directory.with_name(directory.name + MARKDOWN_SUFFIX)
        if not document.is_file():
            continue
        destination = directory / document.name
        if destination.exists():
            logger.debug("Destination already exists, skipping: %s", destination)
            continue

        attachments = directory.parent / FILES_DIRNAME
        if attachments.is_dir() and attachments != directory:
            copy_missing(attachments, directory / FILES_DIRNAME, result)

        try:
            os.rename(document, destination)
        except OSError as exc:
            result.warn(f"Failed to move {document} to {destination}: {exc}")
            continue
        result.record(ActionKind.MOVE, document, destination)
    return result


def fold_locale_directories(root: Path) -> PassResult:
    """Merge original-script directories into existing transliterated siblings."""

    result = PassResult("fold locale directories", root)
    candidates = [path for path in list_directories(root) if contains_hangul(path.name)]
    for directory in deepest_first(candidates):
        if not directory.is_dir():
            continue
        target = directory.with_name(transliterate_segment(directory.name))
        if target == directory or not target.is_dir():
            continue
        merge_into(directory, target, result)
    return result
