"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import delete, insert, select, update

from structsync.domain.session import SessionState
from structsync.domain.types import IdentityKey

from .records import RunOutputRecord
from .tables import baseline_key_table, baseline_snapshot_table, session_state_table

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.orm import Session

log = getLogger(__name__)


class SqlAlchemyBaselineRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def load(self, scope: str) -> frozenset[IdentityKey] | None:
        """Return the stored snapshot for ``scope``; ``None`` when none was ever saved."""

        snapshot = self.session.execute(
            select(baseline_snapshot_table.c.scope).where(baseline_snapshot_table.c.scope == scope)
        ).scalar_one_or_none()
        if snapshot is None:
            return None
        rows = self.session.execute(
            select(baseline_key_table.c.frame_name, baseline_key_table.c.load_pattern).where(
                baseline_key_table.c.scope == scope
            )
        )
        return frozenset(
            key
            for frame_name, load_pattern in rows
            if (key := IdentityKey.parse(frame_name, load_pattern)) is not None
        )

    def save(self, scope: str, keys: Iterable[IdentityKey]) -> None:
        unique = sorted({key for key in keys if key.is_valid}, key=lambda key: key.sort_key)
        self.session.execute(delete(baseline_key_table).where(baseline_key_table.c.scope == scope))
        self.session.execute(
            delete(baseline_snapshot_table).where(baseline_snapshot_table.c.scope == scope)
        )
        self.session.execute(
            insert(baseline_snapshot_table).values(scope=scope, captured_at=datetime.now(UTC))
        )
        if unique:
            self.session.execute(
                insert(baseline_key_table),
                [
                    {"scope": scope, "frame_name": key.frame_name, "load_pattern": key.load_pattern}
                    for key in unique
                ],
            )


class SqlAlchemySessionStateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def load(self, scope: str) -> SessionState:
        row = self.session.execute(
            select(session_state_table.c.last_trigger, session_state_table.c.output).where(
                session_state_table.c.scope == scope
            )
        ).one_or_none()
        if row is None:
            return SessionState()
        last_trigger, raw_output = row
        output = None
        if raw_output:
            try:
                output = RunOutputRecord.model_validate_json(raw_output).to_output()
            except ValueError:
                log.warning("Discarding unreadable stored output for scope %r", scope)
        return SessionState(last_trigger=bool(last_trigger), last_output=output)

    def save(self, scope: str, state: SessionState) -> None:
        values = {
            "last_trigger": state.last_trigger,
            "output": (
                RunOutputRecord.from_output(state.last_output).model_dump_json()
                if state.last_output is not None
                else None
            ),
            "updated_at": datetime.now(UTC),
        }
        result = self.session.execute(
            update(session_state_table).where(session_state_table.c.scope == scope).values(**values)
        )
        if result.rowcount == 0:
            self.session.execute(insert(session_state_table).values(scope=scope, **values))
