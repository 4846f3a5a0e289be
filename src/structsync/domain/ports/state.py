"""Ports for state kept between runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from structsync.domain.session import SessionState
    from structsync.domain.types import IdentityKey


@runtime_checkable
class SessionStateStore(Protocol):
    """Holds the edge-trigger controller's last trigger value and output."""

    def load(self) -> SessionState: ...

    def save(self, state: SessionState) -> None: ...


@runtime_checkable
class BaselineStore(Protocol):
    """Persists the identity keys applied by the previous run for a scope."""

    def load(self, scope: str) -> frozenset[IdentityKey] | None: ...

    def save(self, scope: str, keys: frozenset[IdentityKey]) -> None: ...
