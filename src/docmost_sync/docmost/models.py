"""Typed models for Docmost export interactions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from docmost_sync.local.models import PageNode, SpaceMetadata


@dataclass(slots=True)
class Space:
    """A space as listed by the Docmost API."""

    id: str
    name: str
    slug: str = ""
    description: str = ""
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Space":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            slug=str(data.get("slug") or ""),
            description=str(data.get("description") or ""),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
        )


@dataclass(slots=True)
class Snapshot:
    """Everything retrieved for one space during one run.

    ``blobs`` maps archive-relative paths (``/`` separated) to file contents.
    ``metadata`` is ``None`` when the page tree could not be fetched; the blobs
    are still usable in that case.
    """

    space: Space
    pages: list[PageNode] = field(default_factory=list)
    blobs: dict[str, bytes] = field(default_factory=dict)
    total_pages: int = 0
    metadata: Optional[SpaceMetadata] = None

    @property
    def file_count(self) -> int:
        return len(self.blobs)
