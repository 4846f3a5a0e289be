from __future__ import annotations

from typing import TYPE_CHECKING

import openpyxl
import pytest

from structsync.adapters.spreadsheet import OpenpyxlSheetSource
from structsync.domain.errors import SourceFormatError
from structsync.domain.points import POINT_HEADERS, point_layout
from structsync.domain.ports import SheetLayout
from structsync.domain.reconciliation.engine import LOAD_LAYOUT
from structsync.domain.reconciliation.parse import LOAD_HEADERS, LOAD_SHEET_NAME

if TYPE_CHECKING:
    from pathlib import Path


def _write_load_workbook(
    path: Path, rows: list[list[object]], headers: tuple[str, ...] = LOAD_HEADERS
) -> Path:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    assert sheet is not None
    sheet.title = LOAD_SHEET_NAME
    sheet.append(["", *headers])
    for row in rows:
        sheet.append(["", *row])
    workbook.create_sheet("Other")
    workbook.save(path)
    return path


def test_reads_rows_from_second_column(tmp_path: Path) -> None:
    path = _write_load_workbook(
        tmp_path / "loads.xlsx",
        [
            ["B1", "DEAD", 1, None, 10, 0, 1, None, None, 2.5, 2.5],
            [None] * len(LOAD_HEADERS),
            ["B2", "LIVE", "Trapezoidal", "Local", 2, 0.2, 0.8, None, None, 1, 3],
        ],
    )
    events: list[tuple[int, int, str]] = []

    data = OpenpyxlSheetSource().read(
        path,
        "assigned loads on frames",
        LOAD_LAYOUT,
        progress=lambda current, total, label: events.append((current, total, label)),
    )

    assert data.headers == list(LOAD_HEADERS)
    assert [row[0] for row in data.rows] == ["B1", "B2"]
    assert data.row_numbers == [2, 4]
    assert data.rows[1][2] == "Trapezoidal"
    assert events[-1] == (3, 3, "Reading Excel")


def test_missing_file_is_a_source_error(tmp_path: Path) -> None:
    with pytest.raises(SourceFormatError, match="Excel workbook not found"):
        OpenpyxlSheetSource().read(tmp_path / "missing.xlsx", LOAD_SHEET_NAME, LOAD_LAYOUT)


def test_missing_sheet_is_a_source_error(tmp_path: Path) -> None:
    path = _write_load_workbook(tmp_path / "loads.xlsx", [])

    with pytest.raises(SourceFormatError, match="Worksheet 'Nope' not found in workbook."):
        OpenpyxlSheetSource().read(path, "Nope", LOAD_LAYOUT)


def test_header_mismatch_is_a_source_error(tmp_path: Path) -> None:
    path = _write_load_workbook(tmp_path / "loads.xlsx", [], headers=("Frame", *LOAD_HEADERS[1:]))

    with pytest.raises(SourceFormatError, match="expected header 'FrameName' in column B"):
        OpenpyxlSheetSource().read(path, LOAD_SHEET_NAME, LOAD_LAYOUT)


def test_expected_sheet_name_is_enforced(tmp_path: Path) -> None:
    path = _write_load_workbook(tmp_path / "loads.xlsx", [])
    layout = SheetLayout(headers=LOAD_HEADERS, expected_sheet_name=LOAD_SHEET_NAME, start_column=2)

    with pytest.raises(SourceFormatError, match="is not supported"):
        OpenpyxlSheetSource().read(path, "Other", layout)


def test_reads_point_sheet_with_offset_header(tmp_path: Path) -> None:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    assert sheet is not None
    sheet.title = "PointObjects"
    sheet.append(["Point placement export"])
    sheet.append(list(POINT_HEADERS))
    sheet.append(["P1", 1.5, 2, None])
    path = tmp_path / "points.xlsx"
    workbook.save(path)

    data = OpenpyxlSheetSource().read(path, "PointObjects", point_layout(3))

    assert data.rows == [["P1", 1.5, 2, None]]
    assert data.row_numbers == [3]


def test_corrupt_file_is_a_source_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.xlsx"
    path.write_text("not a workbook")

    with pytest.raises(SourceFormatError, match="Could not open workbook"):
        OpenpyxlSheetSource().read(path, LOAD_SHEET_NAME, LOAD_LAYOUT)
