"""Repair of pages whose title contains ``/``.

The exporter treats a slash in a page title as a path separator: a page
titled ``A/B`` is written as ``A/B.md`` instead of a single file. These
helpers find such chains, in both the original and the transliterated
spelling, and collapse them into one file named ``A-B.md``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from docmost_sync.errors import MetadataError
from docmost_sync.local.models import PageNode, SpaceMetadata
from docmost_sync.local.naming import MARKDOWN_SUFFIX, cleanup_hyphens
from docmost_sync.local.transliterate import transliterate

from .actions import ActionKind, PassResult
from .fsops import list_directories, remove_empty_parents

logger = logging.getLogger(__name__)

_INVALID_SEGMENTS = frozenset({"", ".", ".."})


def title_segments(title: str, *, transliterated: bool) -> Optional[list[str]]:
    """Return the path segments a slash title was split into, or ``None``.

    ``None`` is returned when the title has no slash or a segment would not
    be a usable path component.
    """

    parts = [part.strip() for part in title.split("/")]
    if len(parts) < 2:
        return None
    if transliterated:
        parts = [cleanup_hyphens(transliterate(part)) for part in parts]
    if any(part in _INVALID_SEGMENTS for part in parts):
        return None
    return parts


def merged_filename(segments: list[str]) -> str:
    return "-".join(segments) + MARKDOWN_SUFFIX


def _merge_chain(
    root: Path, page: PageNode, segments: list[str], result: PassResult
) -> Optional[Path]:
    chain = Path(*segments[1:-1], segments[-1] + MARKDOWN_SUFFIX)
    target_name = merged_filename(segments)
    merged: Optional[Path] = None

    for directory in list_directories(root):
        if directory.name != segments[0] or not directory.is_dir():
            continue
        source = directory / chain
        if not source.is_file():
            continue
        target = directory.parent / target_name
        if target.exists():
            logger.debug("Merged file already exists, skipping: %s", target)
            continue
        try:
            target.write_bytes(source.read_bytes())
        except OSError as exc:
            result.warn(f"Failed to write merged file {target} for {page.title!r}: {exc}")
            continue
        result.record(ActionKind.WRITE, source, target, detail=f"slash title {page.title!r}")
        try:
            source.unlink()
        except OSError as exc:
            result.warn(f"Failed to remove split file {source}: {exc}")
            continue
        result.record(ActionKind.DELETE, source)
        remove_empty_parents(source.parent, root, result)
        if merged is None:
            merged = target
    return merged


def reconcile_slash_titles(root: Path) -> PassResult:
    result = PassResult("reconcile slash titles", root)
    try:
        metadata = SpaceMetadata.load(root)
    except MetadataError as exc:
        result.warn(str(exc))
        return result

    metadata_changed = False
    for page in metadata.find_pages_with_slash():
        for transliterated in (False, True):
            segments = title_segments(page.title, transliterated=transliterated)
            if segments is None:
                continue
            merged = _merge_chain(root, page, segments, result)
            if merged is not None and not page.file_path:
                page.file_path = merged.relative_to(root).as_posix()
                metadata_changed = True

    if metadata_changed:
        try:
            path = metadata.save(root)
        except OSError as exc:
            result.warn(f"Failed to update metadata in {root}: {exc}")
        else:
            result.record(ActionKind.REWRITE, path, detail="file paths of merged pages")
    return result
