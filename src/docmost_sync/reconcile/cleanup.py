"""Removal of directories left empty by earlier passes."""

from __future__ import annotations

import os
from pathlib import Path

from .actions import ActionKind, PassResult


def prune_empty_directories(root: Path) -> PassResult:
    """Remove every empty directory below ``root``, children before parents."""

    result = PassResult("prune empty directories", root)
    for dirpath, _, _ in os.walk(root, topdown=False):
        directory = Path(dirpath)
        if directory == root:
            continue
        try:
            with os.scandir(directory) as entries:
                if next(entries, None) is not None:
                    continue
            directory.rmdir()
        except OSError as exc:
            result.warn(f"Failed to remove empty directory {directory}: {exc}")
            continue
        result.record(ActionKind.DELETE, directory, detail="empty directory")
    return result
