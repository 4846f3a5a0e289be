"""Ports for UI-facing collaborators that must never fail a run."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressSink(Protocol):
    """Receives ``(current, total, label)`` after each unit of work."""

    def __call__(self, current: int, total: int, label: str) -> None: ...


@runtime_checkable
class DependentView(Protocol):
    """Read-only consumer of the same model entities; re-evaluated after writes."""

    def mark_stale(self) -> None: ...
