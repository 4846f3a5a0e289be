"""Best-effort removal and apply phases against an open model session.

Neither phase rolls back. A failure on one item is recorded and the next item
is attempted. Progress and refresh signals are fire-and-forget.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from structsync.domain.errors import IssueKind
from structsync.domain.notify import mark_views_stale, notify_progress, refresh_view

from .report import RemovalOutcome, RowIssue

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from structsync.domain.ports import DependentView, ProgressSink, StructuralModel
    from structsync.domain.types import IdentityKey, PreparedAssignment

    from .prepare import ExistingNames

log = logging.getLogger(__name__)

APPLY_PROGRESS_LABEL = "Assigning loads"


@dataclass(slots=True)
class ApplyResult:
    applied: int = 0
    failed: list[RowIssue] = field(default_factory=list["RowIssue"])
    removals: list[RemovalOutcome] = field(default_factory=list["RemovalOutcome"])
    views_scheduled: int = 0

    @property
    def removed(self) -> int:
        return sum(1 for outcome in self.removals if outcome.removed)

    @property
    def failed_removals(self) -> frozenset[IdentityKey]:
        return frozenset(outcome.key for outcome in self.removals if not outcome.removed)

    @property
    def wrote_anything(self) -> bool:
        return self.applied > 0 or self.removed > 0


def remove_missing(
    model: StructuralModel,
    candidates: Iterable[IdentityKey],
    existing: ExistingNames,
) -> list[RemovalOutcome]:
    """Remove every candidate whose frame still exists, in a stable key order."""

    outcomes: list[RemovalOutcome] = []
    for key in sorted(candidates, key=lambda candidate: candidate.sort_key):
        if key.frame_name not in existing:
            log.debug("Skipping removal of %s: frame no longer in model", key)
            continue
        try:
            removed = model.remove_distributed_load(key)
        except Exception:  # noqa: BLE001
            log.warning("Removing %s raised; counted as failed", key, exc_info=True)
            removed = False
        outcomes.append(RemovalOutcome(key=key, removed=removed))
    return outcomes


def apply_assignments(
    model: StructuralModel,
    assignments: Sequence[PreparedAssignment],
    *,
    replace: bool,
    progress: ProgressSink | None = None,
) -> tuple[int, list[RowIssue]]:
    """Apply each assignment in order; return the success count and the failures."""

    applied = 0
    failures: list[RowIssue] = []
    total = len(assignments)
    notify_progress(progress, 0, total, APPLY_PROGRESS_LABEL)
    for position, assignment in enumerate(assignments, start=1):
        reason: str | None = None
        try:
            ok = model.set_distributed_load(assignment, replace=replace)
        except Exception as exc:  # noqa: BLE001
            log.warning("Assigning %s raised; counted as failed", assignment.label, exc_info=True)
            ok = False
            reason = str(exc) or type(exc).__name__
        if ok:
            applied += 1
        else:
            failures.append(
                RowIssue(
                    row_index=assignment.row_index,
                    label=assignment.label,
                    kind=IssueKind.EXTERNAL_APPLY,
                    reason=reason or "model reported failure",
                )
            )
        notify_progress(progress, position, total, APPLY_PROGRESS_LABEL)
    return applied, failures


def reconcile(
    model: StructuralModel,
    assignments: Sequence[PreparedAssignment],
    *,
    removal_candidates: Iterable[IdentityKey] = (),
    existing: ExistingNames,
    replace: bool,
    progress: ProgressSink | None = None,
    views: Sequence[DependentView] = (),
) -> ApplyResult:
    """Run the removal phase, then the apply phase, then the refresh signals."""

    result = ApplyResult()
    result.removals = remove_missing(model, removal_candidates, existing)
    result.applied, result.failed = apply_assignments(
        model, assignments, replace=replace, progress=progress
    )
    if result.wrote_anything:
        refresh_view(model)
        result.views_scheduled = mark_views_stale(views)
    log.info(
        "Applied %s assignments (%s failed), removed %s of %s candidates",
        result.applied,
        len(result.failed),
        result.removed,
        len(result.removals),
    )
    return result
