"""SQLAlchemy adapter package for structsync run state."""

from __future__ import annotations

from .records import RunOutputRecord
from .repositories import SqlAlchemyBaselineRepository, SqlAlchemySessionStateRepository
from .stores import SqlAlchemyBaselineStore, SqlAlchemySessionStateStore
from .tables import create_all_tables, metadata
from .unit_of_work import (
    SqlAlchemyStateUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "RunOutputRecord",
    "SqlAlchemyBaselineRepository",
    "SqlAlchemyBaselineStore",
    "SqlAlchemySessionStateRepository",
    "SqlAlchemySessionStateStore",
    "SqlAlchemyStateUnitOfWork",
    "StartupError",
    "create_all_tables",
    "is_started",
    "metadata",
    "shutdown",
    "startup",
]
