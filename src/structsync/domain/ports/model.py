"""Port for the live structural model service."""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from structsync.domain.types import IdentityKey, PreparedAssignment

type Coordinates = tuple[float, float, float]


@runtime_checkable
class StructuralModel(Protocol):
    """Operations the reconciliation core issues against an open model session.

    Write operations return ``True`` when the model reports success. Lookups
    return ``None`` when the model cannot answer.
    """

    def frame_names(self) -> frozenset[str] | None: ...

    def frame_length(self, name: str) -> float | None: ...

    def set_distributed_load(self, assignment: PreparedAssignment, *, replace: bool) -> bool: ...

    def remove_distributed_load(self, key: IdentityKey) -> bool: ...

    def point_coordinates(self, name: str) -> Coordinates | None: ...

    def set_point_coordinates(self, name: str, coordinates: Coordinates) -> bool: ...

    def refresh_view(self) -> None: ...

    def unlock(self) -> None: ...


type ModelSession = AbstractContextManager[StructuralModel]


@runtime_checkable
class ModelSessionFactory(Protocol):
    """Open one scoped model session; the context manager releases it on exit."""

    def __call__(self) -> ModelSession: ...
