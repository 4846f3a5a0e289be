"""Port for reading tabular worksheets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from .progress import ProgressSink


@dataclass(frozen=True, slots=True, kw_only=True)
class SheetLayout:
    """Where a sheet's header and data live and what the header must say.

    ``expected_sheet_name`` doubles as the default when no sheet name is
    requested; when set, any other requested name is rejected.
    """

    headers: tuple[str, ...]
    expected_sheet_name: str | None = None
    header_row: int = 1
    start_column: int = 1
    progress_label: str = "Reading Excel"
    progress_unit: str = "row"


@dataclass(slots=True)
class SheetData:
    """Header labels plus the raw value rows below them (blank rows dropped).

    ``row_numbers`` holds the 1-based worksheet row of each entry in ``rows``.
    """

    headers: list[str] = field(default_factory=list[str])
    rows: list[Sequence[object]] = field(default_factory=list["Sequence[object]"])
    row_numbers: list[int] = field(default_factory=list[int])


@runtime_checkable
class TabularSource(Protocol):
    """Read one sheet; raise ``SourceFormatError`` for missing files, sheets or bad headers."""

    def read(
        self,
        path: Path,
        sheet_name: str | None,
        layout: SheetLayout,
        *,
        progress: ProgressSink | None = None,
    ) -> SheetData: ...
