"""Dataclasses describing the page tree persisted in ``_metadata.json``."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from docmost_sync.errors import MetadataError

METADATA_FILENAME = "_metadata.json"


@dataclass(slots=True)
class PageNode:
    """One page of the remote tree together with its resolved export file."""

    id: str
    title: str
    position: str
    slug_id: str = ""
    icon: Optional[str] = None
    parent_page_id: Optional[str] = None
    has_children: bool = False
    children: list["PageNode"] = field(default_factory=list)
    file_path: str = ""

    def iter_subtree(self) -> Iterator["PageNode"]:
        """Yield the page and all descendants in depth-first order."""

        yield self
        for child in self.children:
            yield from child.iter_subtree()

    def sort_children(self) -> None:
        self.children.sort(key=lambda child: child.position)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "slugId": self.slug_id,
            "title": self.title,
        }
        if self.icon is not None:
            data["icon"] = self.icon
        data["position"] = self.position
        if self.parent_page_id is not None:
            data["parentPageId"] = self.parent_page_id
        data["hasChildren"] = self.has_children
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        if self.file_path:
            data["filePath"] = self.file_path
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PageNode":
        return cls(
            id=str(data["id"]),
            slug_id=str(data.get("slugId") or ""),
            title=str(data.get("title") or ""),
            icon=data.get("icon"),
            position=str(data.get("position") or ""),
            parent_page_id=data.get("parentPageId"),
            has_children=bool(data.get("hasChildren", False)),
            children=[cls.from_dict(child) for child in data.get("children") or []],
            file_path=str(data.get("filePath") or ""),
        )


@dataclass(slots=True)
class SpaceMetadata:
    """Metadata document written next to every published space tree."""

    id: str
    name: str
    slug: str
    created_at: str
    updated_at: str
    pages: list[PageNode] = field(default_factory=list)
    total_pages: int = 0
    description: str = ""

    def iter_pages(self) -> Iterator[PageNode]:
        for page in self.pages:
            yield from page.iter_subtree()

    def find_pages_with_slash(self) -> list[PageNode]:
        """Return every page whose title contains a path separator."""

        return [page for page in self.iter_pages() if "/" in page.title]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
        }
        if self.description:
            data["description"] = self.description
        data.update(
            {
                "createdAt": self.created_at,
                "updatedAt": self.updated_at,
                "pages": [page.to_dict() for page in self.pages],
                "totalPages": self.total_pages,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpaceMetadata":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            slug=str(data.get("slug") or ""),
            description=str(data.get("description") or ""),
            created_at=str(data.get("createdAt") or ""),
            updated_at=str(data.get("updatedAt") or ""),
            pages=[PageNode.from_dict(page) for page in data.get("pages") or []],
            total_pages=int(data.get("totalPages") or 0),
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def dumps(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def save(self, root: Path) -> Path:
        """Write the document to ``root / _metadata.json`` and return its path."""

        path = root / METADATA_FILENAME
        path.write_text(self.dumps(), encoding="utf-8")
        return path

    @classmethod
    def load(cls, root: Path) -> "SpaceMetadata":
        path = root / METADATA_FILENAME
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise MetadataError(f"failed to read metadata {path}: {exc}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MetadataError(f"failed to parse metadata {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise MetadataError(f"metadata {path} is not a JSON object")
        try:
            return cls.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise MetadataError(f"malformed metadata {path}: {exc}") from exc


def sort_by_position(pages: Iterable[PageNode]) -> list[PageNode]:
    """Return ``pages`` ordered by their lexicographic position key."""

    return sorted(pages, key=lambda page: page.position)
