"""Crash-safe replacement of a published space tree.

Each space owns three sibling directories under the output root:

* ``<base>`` is the published tree that readers see,
* ``<base>_temp`` is where the next tree is built,
* ``<base>_old`` briefly holds the previous tree during the swap.

Only ``rename`` calls touch ``<base>``, so a reader either sees the complete
previous tree or the complete new one.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from docmost_sync.errors import PublishError

logger = logging.getLogger(__name__)

TEMP_SUFFIX = "_temp"
OLD_SUFFIX = "_old"


class PublishSlot:
    def __init__(self, output_root: Path, base_name: str) -> None:
        if not base_name:
            raise ValueError("base_name must not be empty")
        self.output_root = output_root
        self.base_name = base_name

    @property
    def final(self) -> Path:
        return self.output_root / self.base_name

    @property
    def temp(self) -> Path:
        return self.output_root / (self.base_name + TEMP_SUFFIX)

    @property
    def old(self) -> Path:
        return self.output_root / (self.base_name + OLD_SUFFIX)

    def prepare(self) -> Path:
        """Remove a stale temp tree left by an interrupted run and create a fresh one."""

        if self.temp.exists():
            logger.info("Removing stale temp directory %s", self.temp)
            shutil.rmtree(self.temp)
        self.temp.mkdir(parents=True)
        return self.temp

    def publish(self) -> Path:
        """Swap the temp tree into place.

        On failure the previous tree is restored when possible and
        :class:`PublishError` is raised. Leftover ``old`` trees are only
        cleaned up with a warning.
        """

        if self.old.exists():
            try:
                shutil.rmtree(self.old)
            except OSError as exc:
                raise PublishError(f"failed to remove existing old directory {self.old}: {exc}") from exc

        had_final = self.final.exists()
        if had_final:
            try:
                os.rename(self.final, self.old)
            except OSError as exc:
                raise PublishError(f"failed to rename {self.final} to {self.old}: {exc}") from exc

        try:
            os.rename(self.temp, self.final)
        except OSError as exc:
            message = f"failed to rename {self.temp} to {self.final}: {exc}"
            if had_final:
                try:
                    os.rename(self.old, self.final)
                except OSError as rollback_exc:
                    message += f" (rollback also failed: {rollback_exc})"
            raise PublishError(message) from exc

        if self.old.exists():
            try:
                shutil.rmtree(self.old)
            except OSError as exc:
                logger.warning("Failed to remove old directory %s: %s", self.old, exc)

        logger.info("Published %s", self.final)
        return self.final

    def discard(self) -> None:
        """Remove the temp tree after a failed build."""

        if not self.temp.exists():
            return
        try:
            shutil.rmtree(self.temp)
        except OSError as exc:
            logger.warning("Failed to clean up temp directory %s: %s", self.temp, exc)
