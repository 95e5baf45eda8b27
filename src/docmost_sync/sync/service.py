"""One synchronization run: export every space, rebuild it locally and publish it."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from docmost_sync.docmost.client import DocmostClient
from docmost_sync.docmost.export import export_space
from docmost_sync.docmost.models import Space
from docmost_sync.errors import (
    MetadataError,
    PublishError,
    RetrievalError,
    SyncCancelledError,
)
from docmost_sync.local.naming import sanitize_dir_name
from docmost_sync.local.publish import PublishSlot
from docmost_sync.local.repository import LocalRepository
from docmost_sync.reconcile.pipeline import reconcile

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SpaceResult:
    """Outcome for a single space."""

    name: str
    directory: Optional[Path] = None
    files_written: int = 0
    actions: int = 0
    warnings: int = 0
    published: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class SyncReport:
    """Report produced after a synchronization run."""

    spaces: list[SpaceResult] = field(default_factory=list)
    duration: float = 0.0

    @property
    def failed_spaces(self) -> list[str]:
        return [result.name for result in self.spaces if not result.ok]

    @property
    def published_spaces(self) -> int:
        return sum(1 for result in self.spaces if result.published)

    @property
    def total_files(self) -> int:
        return sum(result.files_written for result in self.spaces)

    @property
    def total_actions(self) -> int:
        return sum(result.actions for result in self.spaces)


class SyncService:
    """Coordinate export, reconciliation and publishing for every space."""

    def __init__(
        self,
        client: DocmostClient,
        output_root: Path,
        *,
        converge: bool = False,
    ) -> None:
        self.client = client
        self.output_root = output_root
        self.converge = converge

    def run(self, cancel: Optional[threading.Event] = None) -> SyncReport:
        """Synchronize all spaces.

        Login and space listing failures raise :class:`RetrievalError`. A
        failure inside one space is recorded in the report and the remaining
        spaces are still processed. :class:`SyncCancelledError` is raised when
        ``cancel`` is set between spaces or right before a publish.
        """

        cancel = cancel or threading.Event()
        started = time.monotonic()
        report = SyncReport()

        _check_cancelled(cancel)
        logger.info("Logging in to Docmost...")
        self.client.login()
        spaces = self.client.list_spaces()
        if not spaces:
            logger.info("No spaces found to export.")
        self.output_root.mkdir(parents=True, exist_ok=True)

        for space in spaces:
            _check_cancelled(cancel)
            report.spaces.append(self.sync_space(space, cancel))

        report.duration = time.monotonic() - started
        logger.info(
            "Sync complete: %d space(s), %d published, %d file(s), output %s",
            len(report.spaces),
            report.published_spaces,
            report.total_files,
            self.output_root,
        )
        return report

    def sync_space(self, space: Space, cancel: threading.Event) -> SpaceResult:
        result = SpaceResult(name=space.name)
        base_name = sanitize_dir_name(space.name)
        if not base_name:
            return _fail(result, f"space {space.id} has no usable directory name")

        logger.info("Exporting space: %s (%s)", space.name, space.id)
        try:
            snapshot = export_space(self.client, space)
        except RetrievalError as exc:
            return _fail(result, f"export failed: {exc}")
        logger.info(
            "Space '%s': downloaded %d file(s), %d page(s)",
            space.name,
            snapshot.file_count,
            snapshot.total_pages,
        )

        slot = PublishSlot(self.output_root, base_name)
        try:
            temp = slot.prepare()
        except OSError as exc:
            return _fail(result, f"failed to prepare {slot.temp}: {exc}")

        try:
            populated = LocalRepository(temp).populate(snapshot)
            result.files_written = populated.files_written
            reconciled = reconcile(temp, converge=self.converge)
            result.actions = reconciled.action_count
            result.warnings = len(populated.warnings) + len(reconciled.warnings)
            _check_cancelled(cancel)
            logger.info("Performing atomic swap for space '%s'...", space.name)
            result.directory = slot.publish()
        except SyncCancelledError:
            slot.discard()
            raise
        except (MetadataError, PublishError, OSError) as exc:
            slot.discard()
            return _fail(result, str(exc))

        result.published = True
        logger.info("Space '%s': published to %s", space.name, result.directory)
        return result


def _check_cancelled(cancel: threading.Event) -> None:
    if cancel.is_set():
        raise SyncCancelledError("sync cancelled")


def _fail(result: SpaceResult, message: str) -> SpaceResult:
    result.error = message
    logger.error("Space '%s' failed: %s", result.name, message)
    return result


def create_client(*, base_url: str, email: str, password: str) -> DocmostClient:
    return DocmostClient(base_url=base_url, email=email, password=password)
