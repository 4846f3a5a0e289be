"""Port implementations opening one unit of work per call."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from .unit_of_work import SqlAlchemyStateUnitOfWork

if TYPE_CHECKING:
    from structsync.domain.ports import BaselineStore, SessionStateStore
    from structsync.domain.session import SessionState
    from structsync.domain.types import IdentityKey

type StateUnitOfWorkFactory = Callable[[], SqlAlchemyStateUnitOfWork]


class SqlAlchemyBaselineStore:
    def __init__(self, unit_of_work_factory: StateUnitOfWorkFactory | None = None) -> None:
        self._uow = unit_of_work_factory or SqlAlchemyStateUnitOfWork

    def load(self, scope: str) -> frozenset[IdentityKey] | None:
        with self._uow() as uow:
            return uow.repositories.baselines.load(scope)

    def save(self, scope: str, keys: frozenset[IdentityKey]) -> None:
        with self._uow() as uow:
            uow.repositories.baselines.save(scope, keys)
            uow.commit()


class SqlAlchemySessionStateStore:
    """Session state for one ``scope``, e.g. one workbook and sheet pair."""

    def __init__(
        self,
        scope: str,
        unit_of_work_factory: StateUnitOfWorkFactory | None = None,
    ) -> None:
        self.scope = scope
        self._uow = unit_of_work_factory or SqlAlchemyStateUnitOfWork

    def load(self) -> SessionState:
        with self._uow() as uow:
            return uow.repositories.session_states.load(self.scope)

    def save(self, state: SessionState) -> None:
        with self._uow() as uow:
            uow.repositories.session_states.save(self.scope, state)
            uow.commit()


if TYPE_CHECKING:
    _baseline_check: BaselineStore = SqlAlchemyBaselineStore()
    _state_check: SessionStateStore = SqlAlchemySessionStateStore("scope")
