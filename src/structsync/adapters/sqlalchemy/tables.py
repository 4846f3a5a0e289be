"""SQLAlchemy Core tables for state kept between CLI runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

metadata = MetaData()
metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

baseline_snapshot_table = Table(
    "baseline_snapshot",
    metadata,
    Column("scope", String, primary_key=True),
    Column("captured_at", DateTime(timezone=True), nullable=False),
)

baseline_key_table = Table(
    "baseline_key",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "scope",
        String,
        ForeignKey("baseline_snapshot.scope"),
        nullable=False,
    ),
    Column("frame_name", String, nullable=False),
    Column("load_pattern", String, nullable=False),
    UniqueConstraint("scope", "frame_name", "load_pattern"),
    Index("ix_baseline_key_scope", "scope"),
)

session_state_table = Table(
    "session_state",
    metadata,
    Column("scope", String, primary_key=True),
    Column("last_trigger", Boolean, nullable=False, default=False),
    Column("output", Text, nullable=True),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


def create_all_tables(engine: Engine) -> None:
    metadata.create_all(engine)
