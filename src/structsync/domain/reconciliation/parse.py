"""Worksheet row parsing and validation.

Responsibilities of this stage:
- check the declared header row against the expected labels
- convert raw cells into typed ``LoadRow`` records
- mark rows that cannot be applied as skipped, with a diagnostic tag

Header validation is a precondition for the whole sheet; per-row problems
never abort the run.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from structsync.domain.cells import EMPTY, CellValue, cell_from_raw, is_finite, round_half_away
from structsync.domain.errors import IssueKind, SourceFormatError
from structsync.domain.types import LoadRow, LoadType

from .report import RowIssue

if TYPE_CHECKING:
    from collections.abc import Sequence

LOAD_SHEET_NAME: Final[str] = "Assigned Loads On Frames"
LOAD_HEADERS: Final[tuple[str, ...]] = (
    "FrameName",
    "LoadPattern",
    "Type",
    "CoordinateSystem",
    "Direction",
    "RelDist1",
    "RelDist2",
    "Dist1",
    "Dist2",
    "Value1",
    "Value2",
)

_LOAD_TYPE_NAMES: Final[dict[str, LoadType]] = {
    "uniform": LoadType.UNIFORM,
    "trapezoidal": LoadType.TRAPEZOIDAL,
}


@dataclass(slots=True)
class ParsedSheet:
    """Rows parsed from one sheet, split into usable and skipped."""

    rows: list[LoadRow] = field(default_factory=list["LoadRow"])
    skipped: list[RowIssue] = field(default_factory=list["RowIssue"])

    @property
    def usable(self) -> list[LoadRow]:
        skipped_rows = {issue.row_index for issue in self.skipped}
        return [row for row in self.rows if row.row_index not in skipped_rows]


def column_letter(index: int) -> str:
    """Return the spreadsheet letter for a 1-based column index."""

    letters = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def validate_headers(
    actual: Sequence[object],
    expected: Sequence[str],
    *,
    start_column: int = 1,
) -> None:
    """Raise ``SourceFormatError`` unless ``actual`` matches ``expected`` in order."""

    for offset, label in enumerate(expected):
        raw = actual[offset] if offset < len(actual) else None
        found = cell_from_raw(raw).as_text() or ""
        if found.casefold() != label.casefold():
            letter = column_letter(start_column + offset)
            raise SourceFormatError(
                f"Invalid workbook: expected header '{label}' in column {letter}, found '{found}'."
            )


def parse_load_rows(raw_rows: Sequence[Sequence[object]]) -> ParsedSheet:
    """Parse raw worksheet rows (already stripped of the header) into load rows."""

    sheet = ParsedSheet()
    for index, raw in enumerate(raw_rows):
        row = parse_load_row(index, raw)
        sheet.rows.append(row)
        reason = skip_reason(row)
        if reason is not None:
            sheet.skipped.append(
                RowIssue(
                    row_index=index,
                    label=row.label,
                    kind=IssueKind.ROW_VALIDATION,
                    reason=reason,
                )
            )
    return sheet


def parse_load_row(index: int, raw: Sequence[object]) -> LoadRow:
    cells = [cell_from_raw(value) for value in raw]
    cells.extend([EMPTY] * (len(LOAD_HEADERS) - len(cells)))
    return LoadRow(
        row_index=index,
        frame_name=cells[0].as_text(),
        load_pattern=cells[1].as_text(),
        load_type=parse_load_type(cells[2]),
        coordinate_system=cells[3].as_text(),
        direction=parse_int(cells[4]),
        rel_dist1=cells[5].as_number(),
        rel_dist2=cells[6].as_number(),
        dist1=cells[7].as_number(),
        dist2=cells[8].as_number(),
        value1=cells[9].as_number(),
        value2=cells[10].as_number(),
    )


def skip_reason(row: LoadRow) -> str | None:
    """Return why ``row`` cannot be applied, or ``None`` when it is usable."""

    if row.key is None:
        return "missing frame name or load pattern"
    if row.load_type is None:
        return "missing load type"
    if row.direction is None:
        return "missing direction"
    if not (is_finite(row.value1) and is_finite(row.value2)):
        return "missing or invalid load values"
    if not (has_pair(row.rel_dist1, row.rel_dist2) or has_pair(row.dist1, row.dist2)):
        return "no usable relative or absolute distances"
    return None


def has_pair(first: float | None, second: float | None) -> bool:
    return is_finite(first) and is_finite(second)


def parse_int(cell: CellValue) -> int | None:
    value = cell.as_number()
    if value is None or not math.isfinite(value):
        return None
    return round_half_away(value)


def parse_load_type(cell: CellValue) -> int | None:
    text = cell.as_text()
    if text is not None and text.casefold() in _LOAD_TYPE_NAMES:
        return int(_LOAD_TYPE_NAMES[text.casefold()])
    return parse_int(cell)
