"""Pydantic records for run outputs stored as JSON."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from structsync.domain.reconciliation.report import RunOutput, ValueTable
from structsync.domain.types import IdentityKey

type StoredCell = str | bool | int | float | None


class RunOutputRecord(BaseModel):
    # NaN and infinity are written as JSON constants so replays return the same floats.
    model_config = ConfigDict(extra="ignore", ser_json_inf_nan="constants")

    headers: list[str]
    columns: list[list[StoredCell]]
    messages: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    error: str | None = None
    pending_removals: list[tuple[str, str]] = Field(default_factory=list)

    @classmethod
    def from_output(cls, output: RunOutput) -> RunOutputRecord:
        return cls(
            headers=list(output.table.headers),
            columns=[list(column) for column in output.table.columns],
            messages=list(output.messages),
            removed=list(output.removed),
            error=output.error,
            pending_removals=[
                (key.frame_name, key.load_pattern)
                for key in sorted(output.pending_removals, key=lambda key: key.sort_key)
            ],
        )

    def to_output(self) -> RunOutput:
        table = ValueTable(tuple(self.headers), tuple(tuple(column) for column in self.columns))
        return RunOutput(
            table,
            tuple(self.messages),
            tuple(self.removed),
            error=self.error,
            pending_removals=frozenset(
                IdentityKey(frame, pattern) for frame, pattern in self.pending_removals
            ),
        )
