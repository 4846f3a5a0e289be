"""Run output types: column table, itemized issues, diagnostic messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from structsync.domain.errors import IssueKind
    from structsync.domain.types import IdentityKey

type CellOutput = str | float | int | bool | None


@dataclass(frozen=True, slots=True, kw_only=True)
class RowIssue:
    """One skipped, failed or normalised item, tagged for diagnostics."""

    row_index: int
    label: str
    kind: IssueKind
    reason: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RemovalOutcome:
    key: IdentityKey
    removed: bool

    def __str__(self) -> str:
        verb = "Removed" if self.removed else "Failed to remove"
        return f"{verb} {self.key.frame_name} / {self.key.load_pattern}"


@dataclass(frozen=True, slots=True)
class ValueTable:
    """Column-oriented table; ``columns[i]`` holds every row's value for ``headers[i]``."""

    headers: tuple[str, ...]
    columns: tuple[tuple[CellOutput, ...], ...]

    def __post_init__(self) -> None:
        if len(self.headers) != len(self.columns):
            raise ValueError("ValueTable needs exactly one column per header")
        lengths = {len(column) for column in self.columns}
        if len(lengths) > 1:
            raise ValueError("ValueTable columns must be aligned by row")

    @classmethod
    def empty(cls, headers: Sequence[str]) -> ValueTable:
        return cls(tuple(headers), tuple(() for _ in headers))

    @classmethod
    def from_rows(
        cls,
        headers: Sequence[str],
        rows: Iterable[Sequence[CellOutput]],
    ) -> ValueTable:
        materialized = [tuple(row) for row in rows]
        columns = tuple(
            tuple(row[position] for row in materialized) for position in range(len(headers))
        )
        return cls(tuple(headers), columns)

    @property
    def row_count(self) -> int:
        return len(self.columns[0]) if self.columns else 0

    def column(self, header: str) -> tuple[CellOutput, ...]:
        lookup = {name.casefold(): position for position, name in enumerate(self.headers)}
        return self.columns[lookup[header.casefold()]]

    def rows(self) -> list[tuple[CellOutput, ...]]:
        return list(zip(*self.columns, strict=True)) if self.columns else []


@dataclass(frozen=True, slots=True)
class RunOutput:
    """Everything a run hands back to its caller; immutable so replays are exact.

    ``pending_removals`` holds baseline keys the model refused to remove. They
    stay in the next baseline so the following run attempts them again.
    """

    table: ValueTable
    messages: tuple[str, ...]
    removed: tuple[str, ...] = ()
    error: str | None = None
    pending_removals: frozenset[IdentityKey] = frozenset()

    @property
    def ok(self) -> bool:
        return self.error is None


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def format_issues(title: str, issues: Sequence[RowIssue]) -> str:
    return f"{title} (0-based index:name): " + ", ".join(issue.label for issue in issues)
