"""Frame-load reconciliation core.

Layered flow for one run:
1) read and validate the worksheet header
2) parse rows into typed records, marking unusable rows as skipped
3) deduplicate identity keys within the batch
4) diff the previous key snapshot against the sheet for removals
5) prepare assignments (existence, codes, coordinate system, distances)
6) remove stale loads, then apply prepared assignments
"""

from __future__ import annotations

from .engine import ReconciliationEngine, ReconciliationRequest
from .normalize import ResolvedDistances, resolve_distances
from .report import RemovalOutcome, RowIssue, RunOutput, ValueTable
from .settings import ReconcileSettings

__all__ = [
    "ReconcileSettings",
    "ReconciliationEngine",
    "ReconciliationRequest",
    "RemovalOutcome",
    "ResolvedDistances",
    "RowIssue",
    "RunOutput",
    "ValueTable",
    "resolve_distances",
]
