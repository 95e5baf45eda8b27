"""Ordered reconciliation of a freshly exported working tree.

The passes run in a fixed order. Several of them are repeated on purpose
because later passes can recreate conditions an earlier pass repaired:

* sanitizing names (passes 9-11) can make a file and a folder share a name
  again, so the folding pass runs a second time;
* the same renames can rebuild a slash-title chain, so that repair runs
  again too;
* placeholder pages can surface once other files were merged away.

With ``converge=True`` the whole sequence is repeated until a round makes
no change, bounded by ``max_rounds``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from docmost_sync.errors import DocmostSyncError

from .actions import PassResult, ReconcileResult
from .cleanup import prune_empty_directories
from .escaping import escape_blocks, escape_inline
from .folding import fold_locale_directories, fold_same_name_pairs
from .placeholders import prune_placeholders
from .romanize import (
    transliterate_metadata_paths,
    transliterate_orphan_directories,
    transliterate_orphan_files,
)
from .sanitize import sanitize_residual_characters, strip_space_before_extension
from .slash_titles import reconcile_slash_titles

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 4


@dataclass(frozen=True, slots=True)
class PassStep:
    number: int
    name: str
    run: Callable[[Path], PassResult]


PIPELINE: tuple[PassStep, ...] = (
    PassStep(0, "prune placeholders", prune_placeholders),
    PassStep(1, "escape inline hazards", escape_inline),
    PassStep(2, "escape block hazards", escape_blocks),
    PassStep(3, "reconcile slash titles (original names)", reconcile_slash_titles),
    PassStep(4, "transliterate metadata paths", transliterate_metadata_paths),
    PassStep(5, "reconcile slash titles (transliterated names)", reconcile_slash_titles),
    PassStep(6, "fold same-name pairs", fold_same_name_pairs),
    PassStep(7, "fold locale directories", fold_locale_directories),
    PassStep(8, "transliterate orphan directories", transliterate_orphan_directories),
    PassStep(9, "transliterate orphan files", transliterate_orphan_files),
    PassStep(10, "sanitize residual characters", sanitize_residual_characters),
    PassStep(11, "strip space before extension", strip_space_before_extension),
    PassStep(12, "fold same-name pairs (after sanitizing)", fold_same_name_pairs),
    PassStep(13, "reconcile slash titles (after sanitizing)", reconcile_slash_titles),
    PassStep(14, "prune empty directories", prune_empty_directories),
    PassStep(15, "prune placeholders (final)", prune_placeholders),
)


def run_step(step: PassStep, root: Path) -> PassResult:
    """Run one pass; an error escaping the pass becomes a warning on its result."""

    logger.info("Post-processing: %s in %s...", step.name, root)
    try:
        result = step.run(root)
    except (OSError, ValueError, DocmostSyncError) as exc:
        result = PassResult(step.name, root)
        result.warn(f"Pass {step.number} ({step.name}) failed: {exc}")
        return result
    except Exception as exc:
        logger.exception("Pass %d (%s) crashed", step.number, step.name)
        result = PassResult(step.name, root)
        result.warn(f"Pass {step.number} ({step.name}) crashed: {exc!r}")
        return result
    result.name = step.name
    return result


def run_round(root: Path, steps: Optional[tuple[PassStep, ...]] = None) -> list[PassResult]:
    return [run_step(step, root) for step in (steps or PIPELINE)]


def reconcile(
    root: Path,
    *,
    converge: bool = False,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
) -> ReconcileResult:
    """Repair the working tree at ``root`` in place."""

    if max_rounds < 1:
        raise ValueError("max_rounds must be at least 1")

    outcome = ReconcileResult(root=root)
    rounds = max_rounds if converge else 1
    for number in range(1, rounds + 1):
        results = run_round(root)
        outcome.rounds.append(results)
        changes = sum(len(result.actions) for result in results)
        logger.debug("Reconcile round %d of %s: %d change(s)", number, root, changes)
        if not changes:
            break
    else:
        if converge:
            logger.warning(
                "Working tree %s still changing after %d rounds", root, max_rounds
            )
    return outcome
