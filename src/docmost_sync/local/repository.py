"""Write a retrieved snapshot into a working tree on disk."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from docmost_sync.errors import MetadataError

from .models import METADATA_FILENAME

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from docmost_sync.docmost.models import Snapshot

logger = logging.getLogger(__name__)


def resolve_inside(root: Path, relative: str) -> Path:
    """Resolve ``relative`` below ``root``; raise ``ValueError`` if it escapes."""

    base = root.resolve()
    candidate = (base / relative).resolve()
    if candidate == base or base not in candidate.parents:
        raise ValueError(f"Path {relative!r} is outside of working tree {root}")
    return candidate


@dataclass(slots=True)
class PopulateResult:
    """Outcome of writing a snapshot into a working tree."""

    files_written: int = 0
    metadata_written: bool = False
    warnings: list[str] = field(default_factory=list)


class LocalRepository:
    """Persist snapshot blobs and the page tree metadata under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def populate(self, snapshot: "Snapshot") -> PopulateResult:
        """Write every blob and the metadata document of ``snapshot``.

        A blob that cannot be written is logged and skipped. Failing to write
        ``_metadata.json`` raises :class:`MetadataError` because the
        reconciliation passes depend on it.
        """

        result = PopulateResult()
        self.root.mkdir(parents=True, exist_ok=True)

        for relative, content in snapshot.blobs.items():
            try:
                target = self.resolve_blob_path(relative)
            except ValueError as exc:
                self._warn(result, str(exc))
                continue
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(content)
            except OSError as exc:
                self._warn(result, f"Error writing file {target}: {exc}")
                continue
            result.files_written += 1

        if snapshot.metadata is not None:
            try:
                path = snapshot.metadata.save(self.root)
            except (OSError, TypeError, ValueError) as exc:
                raise MetadataError(
                    f"failed to write {METADATA_FILENAME} for space {snapshot.space.name!r}: {exc}"
                ) from exc
            result.metadata_written = True
            logger.info("Space '%s': metadata saved to %s", snapshot.space.name, path)

        logger.info(
            "Space '%s': %d files saved to %s",
            snapshot.space.name,
            result.files_written,
            self.root,
        )
        return result

    def resolve_blob_path(self, relative: str) -> Path:
        """Map an archive path onto the working tree, refusing paths that escape it."""

        return resolve_inside(self.root, relative)

    @staticmethod
    def _warn(result: PopulateResult, message: str) -> None:
        logger.warning(message)
        result.warnings.append(message)
