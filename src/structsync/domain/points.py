"""Point placement sync: move model points to the coordinates listed in a sheet.

Per row, in sheet order:
- blank name: skipped
- duplicate name: handled by the duplicate policy (first occurrence wins by default)
- current coordinates unreadable: failed
- no X/Y/Z override: unchanged
- non-finite target: skipped
- within tolerance: unchanged
- otherwise written, then re-read to confirm
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final

from structsync.domain.cells import cell_from_raw
from structsync.domain.errors import ConfigurationError, ReconciliationError
from structsync.domain.notify import mark_views_stale, notify_progress, refresh_view
from structsync.domain.ports import SheetLayout
from structsync.domain.reconciliation.deduplicate import deduplicate_rows
from structsync.domain.reconciliation.report import RunOutput, ValueTable
from structsync.domain.types import DuplicatePolicy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structsync.domain.ports import (
        Coordinates,
        DependentView,
        ModelSessionFactory,
        ProgressSink,
        SheetData,
        StructuralModel,
        TabularSource,
    )
    from structsync.domain.reconciliation.report import CellOutput

log = logging.getLogger(__name__)

POINT_SHEET_NAME: Final[str] = "PointObjects"
POINT_HEADERS: Final[tuple[str, ...]] = ("UniqueName", "X", "Y", "Z")
POINT_REPORT_HEADERS: Final[tuple[str, ...]] = (
    "UniqueName",
    "ExcelX",
    "ExcelY",
    "ExcelZ",
    "ModelXBefore",
    "ModelYBefore",
    "ModelZBefore",
    "ModelXAfter",
    "ModelYAfter",
    "ModelZAfter",
    "Changed",
    "Status",
)
DEFAULT_POINT_TOLERANCE: Final[float] = 1e-6
NO_PREVIOUS_POINT_RUN: Final[str] = "Idle."
POINT_PROGRESS_LABEL: Final[str] = "Syncing points"

_UNKNOWN: Final[tuple[float, float, float]] = (math.nan, math.nan, math.nan)


class PointOutcome(StrEnum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True, kw_only=True)
class PointRow:
    row_number: int
    unique_name: str
    x: float | None = None
    y: float | None = None
    z: float | None = None

    @property
    def has_override(self) -> bool:
        return self.x is not None or self.y is not None or self.z is not None


@dataclass(slots=True, kw_only=True)
class PointRowReport:
    row: PointRow
    outcome: PointOutcome
    status: str
    before: Coordinates = _UNKNOWN
    after: Coordinates = _UNKNOWN

    @property
    def changed(self) -> bool:
        return self.outcome is PointOutcome.UPDATED

    def cells(self) -> tuple[CellOutput, ...]:
        return (
            self.row.unique_name,
            self.row.x,
            self.row.y,
            self.row.z,
            *(_finite_or_none(value) for value in self.before),
            *(_finite_or_none(value) for value in self.after),
            self.changed,
            self.status,
        )


@dataclass(slots=True)
class PointSyncReport:
    row_count: int = 0
    rows: list[PointRowReport] = field(default_factory=list["PointRowReport"])
    warnings: list[str] = field(default_factory=list[str])

    def count(self, outcome: PointOutcome) -> int:
        return sum(1 for row in self.rows if row.outcome is outcome)

    @property
    def updated(self) -> int:
        return self.count(PointOutcome.UPDATED)

    def summary(self) -> str:
        if self.row_count == 0:
            return "No Excel rows were read."
        message = (
            f"Processed {self.row_count} row(s): {self.updated} updated, "
            f"{self.count(PointOutcome.UNCHANGED)} unchanged, "
            f"{self.count(PointOutcome.SKIPPED)} skipped, "
            f"{self.count(PointOutcome.FAILED)} failed."
        )
        warnings = [warning for warning in self.warnings if warning.strip()]
        if warnings:
            message += " Warnings: " + " | ".join(warnings)
        return message

    def table(self) -> ValueTable:
        return ValueTable.from_rows(POINT_REPORT_HEADERS, (row.cells() for row in self.rows))


@dataclass(frozen=True, slots=True, kw_only=True)
class PointSyncRequest:
    """Inputs for one point sync.

    Invalid ``scale``, ``tolerance`` or ``start_row`` values fall back to defaults.
    """

    path: Path | str | None
    sheet_name: str | None = None
    start_row: int = 2
    scale: float = 1.0
    tolerance: float = DEFAULT_POINT_TOLERANCE

    @property
    def effective_scale(self) -> float:
        return self.scale if math.isfinite(self.scale) and self.scale > 0 else 1.0

    @property
    def effective_tolerance(self) -> float:
        if math.isfinite(self.tolerance) and self.tolerance >= 0:
            return self.tolerance
        return DEFAULT_POINT_TOLERANCE

    @property
    def effective_start_row(self) -> int:
        return max(2, self.start_row)


def point_layout(start_row: int = 2) -> SheetLayout:
    return SheetLayout(
        headers=POINT_HEADERS,
        header_row=max(1, start_row - 1),
        progress_label="Reading points",
    )


def parse_point_rows(data: SheetData) -> list[PointRow]:
    """Turn raw sheet rows into point rows; rows without any value are dropped."""

    rows: list[PointRow] = []
    for position, raw in enumerate(data.rows):
        cells = [cell_from_raw(value) for value in list(raw)[: len(POINT_HEADERS)]]
        while len(cells) < len(POINT_HEADERS):
            cells.append(cell_from_raw(None))
        name = cells[0].as_text() or ""
        x, y, z = (cell.as_number() for cell in cells[1:])
        if not name and x is None and y is None and z is None:
            continue
        row_number = data.row_numbers[position] if position < len(data.row_numbers) else position
        rows.append(PointRow(row_number=row_number, unique_name=name, x=x, y=y, z=z))
    return rows


def sync_point_coordinates(
    model: StructuralModel,
    rows: Sequence[PointRow],
    *,
    scale: float = 1.0,
    tolerance: float = DEFAULT_POINT_TOLERANCE,
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIRST_WINS,
    progress: ProgressSink | None = None,
) -> PointSyncReport:
    report = PointSyncReport(row_count=len(rows))
    duplicates = deduplicate_rows(
        rows,
        policy=duplicate_policy,
        key_of=lambda row: row.unique_name,
        label_of=lambda row: row.unique_name,
        index_of=lambda row: row.row_number,
    )
    dropped = {issue.row_index for issue in duplicates.dropped}

    total = len(rows)
    for position, row in enumerate(rows, start=1):
        duplicate = row.row_number in dropped
        report.rows.append(_sync_row(model, row, duplicate, scale, tolerance, report))
        notify_progress(progress, position, total, POINT_PROGRESS_LABEL)
    return report


def _sync_row(
    model: StructuralModel,
    row: PointRow,
    duplicate: bool,
    scale: float,
    tolerance: float,
    report: PointSyncReport,
) -> PointRowReport:
    name = row.unique_name
    if not name:
        return PointRowReport(row=row, outcome=PointOutcome.SKIPPED, status="UniqueName missing.")
    if duplicate:
        report.warnings.append(f"Row {row.row_number}: duplicate UniqueName '{name}' skipped.")
        return PointRowReport(row=row, outcome=PointOutcome.SKIPPED, status="Duplicate UniqueName.")

    before = _read(model, row, report, "reading coordinates")
    if before is None:
        return PointRowReport(
            row=row, outcome=PointOutcome.FAILED, status="Failed to read model coordinates."
        )
    if not row.has_override:
        return PointRowReport(
            row=row,
            outcome=PointOutcome.UNCHANGED,
            status="No Excel override; kept model value.",
            before=before,
            after=before,
        )

    target = (
        row.x * scale if row.x is not None else before[0],
        row.y * scale if row.y is not None else before[1],
        row.z * scale if row.z is not None else before[2],
    )
    if not all(math.isfinite(value) for value in target):
        report.warnings.append(f"Row {row.row_number}: invalid coordinate detected; skipped.")
        return PointRowReport(
            row=row,
            outcome=PointOutcome.SKIPPED,
            status="Invalid coordinate input.",
            before=before,
            after=before,
        )
    if not any(
        requires_update(current, wanted, tolerance)
        for current, wanted in zip(before, target, strict=True)
    ):
        return PointRowReport(
            row=row,
            outcome=PointOutcome.UNCHANGED,
            status="Within tolerance; no update.",
            before=before,
            after=before,
        )

    try:
        written = model.set_point_coordinates(name, target)
    except Exception as exc:  # noqa: BLE001
        log.warning("Writing coordinates of %r raised", name, exc_info=True)
        report.warnings.append(
            f"Row {row.row_number}: writing coordinates for '{name}' raised - {exc}"
        )
        written = False
    else:
        if not written:
            report.warnings.append(
                f"Row {row.row_number}: writing coordinates for '{name}' failed."
            )
    if not written:
        return PointRowReport(
            row=row,
            outcome=PointOutcome.FAILED,
            status="Failed to update model.",
            before=before,
            after=before,
        )

    confirmed = _read(model, row, report, "post-update read") or target
    return PointRowReport(
        row=row,
        outcome=PointOutcome.UPDATED,
        status="Updated coordinates.",
        before=before,
        after=confirmed,
    )


def _read(
    model: StructuralModel,
    row: PointRow,
    report: PointSyncReport,
    action: str,
) -> Coordinates | None:
    name = row.unique_name
    try:
        coordinates = model.point_coordinates(name)
    except Exception as exc:  # noqa: BLE001
        log.warning("Reading coordinates of %r raised", name, exc_info=True)
        report.warnings.append(f"Row {row.row_number}: {action} for '{name}' raised - {exc}")
        return None
    if coordinates is None:
        report.warnings.append(f"Row {row.row_number}: {action} for '{name}' failed.")
    return coordinates


def requires_update(current: float, target: float, tolerance: float) -> bool:
    if not (math.isfinite(current) and math.isfinite(target)):
        return True
    if tolerance <= 0:
        return current != target
    return abs(current - target) > tolerance


def _finite_or_none(value: float) -> float | None:
    return value if math.isfinite(value) else None


@dataclass(slots=True, kw_only=True)
class PointSyncEngine:
    """Read the point sheet, then sync every row against one model session."""

    source: TabularSource
    open_model: ModelSessionFactory | None
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIRST_WINS
    progress: ProgressSink | None = None
    views: Sequence[DependentView] = ()

    def run(self, request: PointSyncRequest) -> RunOutput:
        empty = ValueTable.empty(POINT_REPORT_HEADERS)
        try:
            report = self._run(request)
        except ReconciliationError as exc:
            log.error("Point sync aborted: %s", exc)
            return RunOutput(empty, (f"Failed: {exc}",), error=str(exc))
        except Exception as exc:
            log.exception("Point sync failed unexpectedly")
            message = str(exc) or type(exc).__name__
            return RunOutput(empty, (f"Failed: {message}",), error=message)
        log.info("Point sync finished: %s", report.summary())
        return RunOutput(report.table(), (report.summary(),))

    def _run(self, request: PointSyncRequest) -> PointSyncReport:
        if self.open_model is None:
            raise ConfigurationError("No model session configured.")
        if request.path is None or not str(request.path).strip():
            raise ConfigurationError("Workbook path is empty.")
        sheet_name = (request.sheet_name or "").strip() or POINT_SHEET_NAME
        data = self.source.read(
            Path(request.path),
            sheet_name,
            point_layout(request.effective_start_row),
            progress=self.progress,
        )
        rows = parse_point_rows(data)
        if not rows:
            return PointSyncReport()

        with self.open_model() as model:
            model.unlock()
            report = sync_point_coordinates(
                model,
                rows,
                scale=request.effective_scale,
                tolerance=request.effective_tolerance,
                duplicate_policy=self.duplicate_policy,
                progress=self.progress,
            )
            if report.updated > 0:
                refresh_view(model)
                mark_views_stale(self.views)
        return report
