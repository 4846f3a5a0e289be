"""Typed worksheet cell values.

Workbook readers hand back loosely typed values (text, numbers, blanks, the
occasional date or boolean). They are folded into a small tagged union so row
parsing only ever asks a cell for its text or its number.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

_THOUSANDS_SEPARATORS = (",", "_", " ")


@dataclass(frozen=True, slots=True)
class TextCell:
    text: str
    kind: Literal["text"] = "text"

    def as_text(self) -> str | None:
        stripped = self.text.strip()
        return stripped or None

    def as_number(self) -> float | None:
        return parse_number(self.text)


@dataclass(frozen=True, slots=True)
class NumberCell:
    value: float
    kind: Literal["number"] = "number"

    def as_text(self) -> str | None:
        if self.value.is_integer():
            return str(int(self.value))
        return repr(self.value)

    def as_number(self) -> float | None:
        return self.value


@dataclass(frozen=True, slots=True)
class EmptyCell:
    kind: Literal["empty"] = "empty"

    def as_text(self) -> str | None:
        return None

    def as_number(self) -> float | None:
        return None


type CellValue = TextCell | NumberCell | EmptyCell

EMPTY = EmptyCell()


def cell_from_raw(value: object) -> CellValue:
    """Wrap a raw workbook value in the matching cell type."""

    if value is None:
        return EMPTY
    if isinstance(value, bool):
        return NumberCell(1.0 if value else 0.0)
    if isinstance(value, int | float):
        return NumberCell(float(value)) if math.isfinite(value) else EMPTY
    if isinstance(value, str):
        return TextCell(value) if value.strip() else EMPTY
    text = str(value)
    return TextCell(text) if text.strip() else EMPTY


def parse_number(text: str) -> float | None:
    """Leniently parse a numeric string.

    Returns ``None`` for text that is not a number, including spellings of NaN
    and infinity, so a parsed cell is always finite or absent.
    """

    candidate = text.strip()
    for separator in _THOUSANDS_SEPARATORS:
        candidate = candidate.replace(separator, "")
    if not candidate:
        return None
    try:
        number = float(candidate)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""

    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def is_finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)
