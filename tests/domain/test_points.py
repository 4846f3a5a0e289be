from __future__ import annotations

import math

import pytest

from structsync.domain.errors import SourceFormatError
from structsync.domain.points import (
    POINT_HEADERS,
    POINT_REPORT_HEADERS,
    PointOutcome,
    PointRow,
    PointSyncEngine,
    PointSyncRequest,
    parse_point_rows,
    point_layout,
    requires_update,
    sync_point_coordinates,
)
from structsync.domain.ports import SheetData
from structsync.domain.types import DuplicatePolicy
from tests.helpers.fakes import FakeModel, FakeSheetSource, RecordingView, session_factory


def _row(number: int, name: str, x: float | None, y: float | None, z: float | None) -> PointRow:
    return PointRow(row_number=number, unique_name=name, x=x, y=y, z=z)


def test_parse_point_rows_keeps_sheet_row_numbers() -> None:
    data = SheetData(
        headers=list(POINT_HEADERS),
        rows=[["P1", 1, "2.5", None], [None, None, None, None], [" P2 ", None, None, 3]],
        row_numbers=[2, 3, 4],
    )

    rows = parse_point_rows(data)

    assert rows == [
        _row(2, "P1", 1.0, 2.5, None),
        _row(4, "P2", None, None, 3.0),
    ]


def test_point_layout_places_header_above_start_row() -> None:
    assert point_layout(5).header_row == 4
    assert point_layout(1).header_row == 1


def test_sync_updates_points_outside_tolerance() -> None:
    model = FakeModel(points={"P1": (0.0, 0.0, 0.0)})

    report = sync_point_coordinates(model, [_row(2, "P1", 1.0, None, 2.0)], scale=1000.0)

    (row,) = report.rows
    assert row.outcome is PointOutcome.UPDATED
    assert row.status == "Updated coordinates."
    assert row.after == (1000.0, 0.0, 2000.0)
    assert model.points["P1"] == (1000.0, 0.0, 2000.0)


def test_sync_classifies_each_row() -> None:
    model = FakeModel(
        points={
            "SAME": (1.0, 1.0, 1.0),
            "KEEP": (5.0, 5.0, 5.0),
            "STUCK": (0.0, 0.0, 0.0),
        },
        reject_points={"STUCK"},
    )
    rows = [
        _row(2, "", 1.0, 1.0, 1.0),
        _row(3, "SAME", 1.0, 1.0, 1.0 + 1e-9),
        _row(4, "KEEP", None, None, None),
        _row(5, "MISSING", 1.0, 1.0, 1.0),
        _row(6, "STUCK", 9.0, 9.0, 9.0),
        _row(7, "same", 2.0, 2.0, 2.0),
        _row(8, "KEEP", float("inf"), None, None),
    ]

    report = sync_point_coordinates(model, rows)

    assert [row.status for row in report.rows] == [
        "UniqueName missing.",
        "Within tolerance; no update.",
        "No Excel override; kept model value.",
        "Failed to read model coordinates.",
        "Failed to update model.",
        "Duplicate UniqueName.",
        "Duplicate UniqueName.",
    ]
    assert report.updated == 0
    assert report.count(PointOutcome.SKIPPED) == 3
    assert report.count(PointOutcome.FAILED) == 2
    assert "Row 7: duplicate UniqueName 'same' skipped." in report.warnings
    assert model.write_calls == ["set_point_coordinates"]


def test_invalid_target_is_skipped() -> None:
    model = FakeModel(points={"P1": (0.0, 0.0, 0.0)})

    report = sync_point_coordinates(model, [_row(2, "P1", float("nan"), 0.0, 0.0)])

    assert report.rows[0].status == "Invalid coordinate input."
    assert model.write_calls == []


def test_duplicate_policy_last_wins_for_points() -> None:
    model = FakeModel(points={"P1": (0.0, 0.0, 0.0)})

    report = sync_point_coordinates(
        model,
        [_row(2, "P1", 1.0, 0.0, 0.0), _row(3, "P1", 2.0, 0.0, 0.0)],
        duplicate_policy=DuplicatePolicy.LAST_WINS,
    )

    assert [row.outcome for row in report.rows] == [PointOutcome.SKIPPED, PointOutcome.UPDATED]
    assert model.points["P1"] == (2.0, 0.0, 0.0)


def test_summary_and_table() -> None:
    model = FakeModel(points={"P1": (0.0, 0.0, 0.0)})
    report = sync_point_coordinates(
        model, [_row(2, "P1", 1.0, None, None), _row(3, "P9", 1.0, 1.0, 1.0)]
    )

    assert report.summary() == (
        "Processed 2 row(s): 1 updated, 0 unchanged, 0 skipped, 1 failed. "
        "Warnings: Row 3: reading coordinates for 'P9' failed."
    )
    table = report.table()
    assert table.headers == POINT_REPORT_HEADERS
    assert table.column("Changed") == (True, False)
    assert table.column("ModelXBefore") == (0.0, None)
    assert table.column("ModelXAfter") == (1.0, None)


@pytest.mark.parametrize(
    ("current", "target", "tolerance", "expected"),
    [
        (1.0, 1.0 + 1e-7, 1e-6, False),
        (1.0, 1.1, 1e-6, True),
        (1.0, 1.0, 0.0, False),
        (1.0, 1.0 + 1e-12, 0.0, True),
        (math.nan, 1.0, 1e-6, True),
    ],
)
def test_requires_update(current: float, target: float, tolerance: float, expected: bool) -> None:
    assert requires_update(current, target, tolerance) is expected


def test_request_falls_back_to_defaults() -> None:
    request = PointSyncRequest(path="p.xlsx", start_row=0, scale=-2.0, tolerance=math.nan)

    assert request.effective_start_row == 2
    assert request.effective_scale == 1.0
    assert request.effective_tolerance == 1e-6


def test_engine_refreshes_model_after_updates() -> None:
    model = FakeModel(points={"P1": (0.0, 0.0, 0.0)})
    open_model, opened = session_factory(model)
    view = RecordingView()
    source = FakeSheetSource(rows=[["P1", 3.0, None, None]], headers=POINT_HEADERS)
    engine = PointSyncEngine(source=source, open_model=open_model, views=[view])

    output = engine.run(PointSyncRequest(path="points.xlsx", start_row=3))

    assert output.ok
    assert output.messages == (
        "Processed 1 row(s): 1 updated, 0 unchanged, 0 skipped, 0 failed.",
    )
    assert opened == [1]
    assert model.unlocks == 1
    assert model.refreshes == 1
    assert view.stale == 1
    sheet_name, layout = source.reads[0]
    assert sheet_name == "PointObjects"
    assert layout.header_row == 2


def test_engine_with_no_rows_does_not_open_model() -> None:
    model = FakeModel()
    open_model, opened = session_factory(model)
    engine = PointSyncEngine(
        source=FakeSheetSource(headers=POINT_HEADERS), open_model=open_model
    )

    output = engine.run(PointSyncRequest(path="points.xlsx"))

    assert output.messages == ("No Excel rows were read.",)
    assert opened == []


def test_engine_reports_failures() -> None:
    engine = PointSyncEngine(
        source=FakeSheetSource(error=SourceFormatError("Worksheet 'X' not found in workbook.")),
        open_model=session_factory(FakeModel())[0],
    )

    output = engine.run(PointSyncRequest(path="points.xlsx", sheet_name="X"))

    assert output.messages == ("Failed: Worksheet 'X' not found in workbook.",)
    assert output.table.headers == POINT_REPORT_HEADERS
