"""Filesystem primitives shared by the reconciliation passes."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Iterable, Iterator

from docmost_sync.local.naming import is_markdown

from .actions import ActionKind, PassResult

FILES_DIRNAME = "files"


# ----------------------------------------------------------------------
# Traversal
# ----------------------------------------------------------------------
def iter_tree(root: Path) -> Iterator[tuple[Path, list[str], list[str]]]:
    """``os.walk`` over ``root`` with entries visited in sorted order."""

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        filenames.sort()
        yield Path(dirpath), dirnames, filenames


def list_directories(root: Path) -> list[Path]:
    """Return every directory below ``root`` (the root itself excluded)."""

    found: list[Path] = []
    for directory, dirnames, _ in iter_tree(root):
        found.extend(directory / name for name in dirnames)
    return found


def list_markdown_files(root: Path) -> list[Path]:
    found: list[Path] = []
    for directory, _, filenames in iter_tree(root):
        found.extend(directory / name for name in filenames if is_markdown(name))
    return found


def deepest_first(paths: Iterable[Path]) -> list[Path]:
    """Order ``paths`` by descending depth; ties keep their sorted order."""

    return sorted(sorted(paths), key=lambda path: len(path.parts), reverse=True)


def is_empty_dir(path: Path) -> bool:
    try:
        with os.scandir(path) as entries:
            return next(entries, None) is None
    except OSError:
        return False


# ----------------------------------------------------------------------
# Mutations
# ----------------------------------------------------------------------
def merge_directory(source: Path, destination: Path, result: PassResult) -> None:
    """Move the contents of ``source`` into ``destination``.

    Directories missing from the destination are moved, directories present
    on both sides are merged recursively and the source copy removed. Files
    missing from the destination are moved. When the destination already has
    a file of the same name the source copy is discarded and the destination
    file is kept unchanged.

    A failed move raises :class:`OSError`; entries moved before the failure
    stay moved and ``source`` is left in place.
    """

    for entry in sorted(source.iterdir()):
        target = destination / entry.name
        if entry.is_dir() and not entry.is_symlink():
            if target.exists():
                merge_directory(entry, target, result)
                shutil.rmtree(entry)
            else:
                os.rename(entry, target)
                result.record(ActionKind.MOVE, entry, target)
            continue

        if target.exists():
            try:
                entry.unlink()
            except OSError as exc:
                result.warn(f"Failed to remove duplicate source file {entry}: {exc}")
                continue
            result.record(ActionKind.DISCARD, entry, target, detail="destination kept")
            continue

        os.rename(entry, target)
        result.record(ActionKind.MOVE, entry, target)


def merge_into(source: Path, destination: Path, result: PassResult) -> bool:
    """Merge ``source`` into ``destination`` and remove ``source``.

    Returns ``False`` (with a warning) when the merge failed; the source
    directory is kept in that case.
    """

    try:
        merge_directory(source, destination, result)
    except OSError as exc:
        result.warn(f"Failed to merge {source} into {destination}: {exc}")
        return False
    try:
        shutil.rmtree(source)
    except OSError as exc:
        result.warn(f"Failed to remove merged folder {source}: {exc}")
    result.record(ActionKind.MERGE, source, destination)
    return True


def copy_missing(source: Path, destination: Path, result: PassResult) -> None:
    """Copy ``source`` into ``destination`` recursively without overwriting files."""

    try:
        destination.mkdir(parents=True, exist_ok=True)
        entries = sorted(source.iterdir())
    except OSError as exc:
        result.warn(f"Failed to copy {source} to {destination}: {exc}")
        return

    for entry in entries:
        target = destination / entry.name
        if entry.is_dir():
            copy_missing(entry, target, result)
            continue
        if target.exists():
            continue
        try:
            shutil.copyfile(entry, target)
        except OSError as exc:
            result.warn(f"Failed to copy {entry} to {target}: {exc}")
            continue
        result.record(ActionKind.COPY, entry, target)


def remove_empty_parents(directory: Path, stop: Path, result: PassResult) -> None:
    """Remove ``directory`` and its ancestors while they are empty, stopping at ``stop``."""

    current = directory
    while current != stop and stop in current.parents:
        if not is_empty_dir(current):
            return
        try:
            current.rmdir()
        except OSError as exc:
            result.warn(f"Failed to remove empty directory {current}: {exc}")
            return
        result.record(ActionKind.DELETE, current, detail="empty directory")
        current = current.parent


# ----------------------------------------------------------------------
# Document I/O (line endings preserved)
# ----------------------------------------------------------------------
def read_document(path: Path) -> str:
    return path.read_bytes().decode("utf-8")


def write_document(path: Path, text: str) -> None:
    path.write_bytes(text.encode("utf-8"))
