"""Records of what the reconciliation passes changed."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class ActionKind(str, enum.Enum):
    RENAME = "rename"
    MOVE = "move"
    MERGE = "merge"
    DELETE = "delete"
    DISCARD = "discard"
    WRITE = "write"
    REWRITE = "rewrite"
    COPY = "copy"


@dataclass(slots=True)
class NormalizationAction:
    kind: ActionKind
    source: Path
    target: Optional[Path] = None
    detail: Optional[str] = None

    def describe(self, root: Optional[Path] = None) -> str:
        def _show(path: Path) -> str:
            if root is not None:
                try:
                    return str(path.relative_to(root))
                except ValueError:
                    pass
            return str(path)

        text = f"{self.kind.value.capitalize()}: {_show(self.source)}"
        if self.target is not None:
            text += f" -> {_show(self.target)}"
        if self.detail:
            text += f" ({self.detail})"
        return text


@dataclass(slots=True)
class PassResult:
    """Actions and warnings produced by one pass over the working tree."""

    name: str
    root: Path
    actions: list[NormalizationAction] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.actions)

    def record(
        self,
        kind: ActionKind,
        source: Path,
        target: Optional[Path] = None,
        detail: Optional[str] = None,
    ) -> NormalizationAction:
        action = NormalizationAction(kind=kind, source=source, target=target, detail=detail)
        self.actions.append(action)
        logger.info("  %s", action.describe(self.root))
        return action

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)


@dataclass(slots=True)
class ReconcileResult:
    """Per-round pass results of one pipeline invocation."""

    root: Path
    rounds: list[list[PassResult]] = field(default_factory=list)

    @property
    def passes(self) -> list[PassResult]:
        return [result for round_results in self.rounds for result in round_results]

    @property
    def actions(self) -> list[NormalizationAction]:
        return [action for result in self.passes for action in result.actions]

    @property
    def warnings(self) -> list[str]:
        return [warning for result in self.passes for warning in result.warnings]

    @property
    def action_count(self) -> int:
        return sum(len(result.actions) for result in self.passes)

    def count_by_kind(self) -> dict[ActionKind, int]:
        counts: dict[ActionKind, int] = {}
        for action in self.actions:
            counts[action.kind] = counts.get(action.kind, 0) + 1
        return counts
