"""Workbook reader backed by openpyxl."""

from __future__ import annotations

import logging
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from structsync.domain.errors import SourceFormatError
from structsync.domain.notify import completion_status, notify_progress
from structsync.domain.ports import SheetData, SheetLayout
from structsync.domain.reconciliation.parse import validate_headers

if TYPE_CHECKING:
    from collections.abc import Iterator

    from openpyxl.workbook.workbook import Workbook
    from openpyxl.worksheet._read_only import ReadOnlyWorksheet

    from structsync.domain.ports import ProgressSink

log = logging.getLogger(__name__)


@contextmanager
def open_workbook(path: Path) -> Iterator[Workbook]:
    """Open ``path`` read-only with cached values; always closes the workbook."""

    resolved = Path(path).expanduser()
    if not resolved.is_file():
        raise SourceFormatError(f"Excel workbook not found: {resolved}")
    try:
        workbook = openpyxl.load_workbook(str(resolved), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, OSError) as exc:
        raise SourceFormatError(f"Could not open workbook {resolved}: {exc}") from exc
    try:
        yield workbook
    finally:
        workbook.close()


def resolve_sheet(workbook: Workbook, sheet_name: str) -> ReadOnlyWorksheet:
    wanted = sheet_name.strip().casefold()
    for name in workbook.sheetnames:
        if name.strip().casefold() == wanted:
            return workbook[name]
    raise SourceFormatError(f"Worksheet '{sheet_name}' not found in workbook.")


class OpenpyxlSheetSource:
    """``TabularSource`` reading one sheet of an ``.xlsx`` workbook."""

    def read(
        self,
        path: Path,
        sheet_name: str | None,
        layout: SheetLayout,
        *,
        progress: ProgressSink | None = None,
    ) -> SheetData:
        requested = (sheet_name or "").strip() or layout.expected_sheet_name
        if not requested:
            raise SourceFormatError("No worksheet name given.")
        expected = layout.expected_sheet_name
        if expected is not None and requested.casefold() != expected.casefold():
            raise SourceFormatError(
                f"Worksheet '{requested}' is not supported; expected '{expected}'."
            )

        with open_workbook(path) as workbook:
            sheet = resolve_sheet(workbook, requested)
            return self._read_sheet(sheet, layout, progress)

    def _read_sheet(
        self,
        sheet: ReadOnlyWorksheet,
        layout: SheetLayout,
        progress: ProgressSink | None,
    ) -> SheetData:
        width = len(layout.headers)
        last_column = layout.start_column + width - 1
        header = next(
            sheet.iter_rows(
                min_row=layout.header_row,
                max_row=layout.header_row,
                min_col=layout.start_column,
                max_col=last_column,
                values_only=True,
            ),
            (),
        )
        validate_headers(header, layout.headers, start_column=layout.start_column)

        first_data_row = layout.header_row + 1
        last_row = sheet.max_row or 0
        total = max(0, last_row - layout.header_row)
        data = SheetData(headers=[str(label) for label in layout.headers])
        for offset, values in enumerate(
            sheet.iter_rows(
                min_row=first_data_row,
                min_col=layout.start_column,
                max_col=last_column,
                values_only=True,
            )
        ):
            row = list(values) + [None] * (width - len(values))
            if any(not _is_blank(value) for value in row):
                data.rows.append(row)
                data.row_numbers.append(first_data_row + offset)
            notify_progress(progress, offset + 1, total, layout.progress_label)

        log.debug(
            "%s from sheet %r",
            completion_status(len(data.rows), layout.progress_label, layout.progress_unit),
            sheet.title,
        )
        return data


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
