"""Best-effort notifications: progress, view refresh, dependent-view staleness.

Failures here are transient UI problems. They are logged and swallowed so a
broken progress bar can never fail a reconciliation run.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from structsync.domain.ports import DependentView, ProgressSink, StructuralModel

log = logging.getLogger(__name__)


def notify_progress(sink: ProgressSink | None, current: int, total: int, label: str) -> None:
    if sink is None:
        return
    try:
        sink(current, total, label)
    except Exception:  # noqa: BLE001
        log.debug("Progress sink failed at %s/%s", current, total, exc_info=True)


def refresh_view(model: StructuralModel) -> None:
    try:
        model.refresh_view()
    except Exception:  # noqa: BLE001
        log.warning("Model view refresh failed; ignoring", exc_info=True)


def mark_views_stale(views: Iterable[DependentView]) -> int:
    """Mark every view stale; return how many accepted the request."""

    scheduled = 0
    for view in views:
        try:
            view.mark_stale()
        except Exception:  # noqa: BLE001
            log.warning("Could not schedule refresh for %r; ignoring", view, exc_info=True)
            continue
        scheduled += 1
    return scheduled


def progress_status(current: int, total: int, label: str, unit: str) -> str:
    """Format ``"<label> 3 of 10 rows (30%)."`` style status text."""

    safe_current = max(0, current)
    safe_total = max(0, total)
    if safe_total <= 0:
        return f"{label} ({safe_current})"
    clamped = min(safe_current, safe_total)
    percent = clamped / safe_total * 100.0
    return f"{label} {clamped} of {safe_total} {unit}s ({percent:.4g}%)."


def completion_status(count: int, label: str, unit: str) -> str:
    safe = max(0, count)
    return f"{label} (1 {unit})" if safe == 1 else f"{label} ({safe} {unit}s)"
