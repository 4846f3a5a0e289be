"""Distance normalisation between relative and absolute conventions.

Responsibilities of this stage:
- clamp relative positions to [0, 1] and absolute positions to [0, length]
- order each pair so start <= end
- derive the missing representation from a usable reference length
- report whether any input had to be adjusted

The function is pure: no model lookups, no logging of row context.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .settings import DEFAULT_DISTANCE_TOLERANCE, DEFAULT_LENGTH_TOLERANCE, ReconcileSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

type DistancePair = tuple[float | None, float | None]


@dataclass(frozen=True, slots=True)
class ResolvedDistances:
    rel_dist1: float
    rel_dist2: float
    dist1: float
    dist2: float
    adjusted: bool = False


def resolve_distances(
    length: float | None,
    relative: DistancePair | None,
    absolute: DistancePair | None,
    *,
    settings: ReconcileSettings | None = None,
) -> ResolvedDistances | None:
    """Resolve one relative/absolute distance pair against ``length``.

    Returns ``None`` when neither representation can be resolved; the caller
    skips the row in that case.
    """

    tolerance = settings.distance_tolerance if settings else DEFAULT_DISTANCE_TOLERANCE
    min_length = settings.length_tolerance if settings else DEFAULT_LENGTH_TOLERANCE

    rel = _usable_pair(relative)
    abs_ = _usable_pair(absolute)
    safe_length = length if _is_usable_length(length, min_length) else None

    if rel is not None:
        return _from_relative(rel, abs_, safe_length, tolerance)
    if abs_ is not None and safe_length is not None:
        return _from_absolute(abs_, safe_length, tolerance)
    return None


def _from_relative(
    rel: tuple[float, float],
    abs_: tuple[float, float] | None,
    length: float | None,
    tolerance: float,
) -> ResolvedDistances:
    r1, clamped1 = _clamp(rel[0], 1.0, tolerance)
    r2, clamped2 = _clamp(rel[1], 1.0, tolerance)
    adjusted = clamped1 or clamped2
    if r1 > r2:
        r1, r2 = r2, r1
        adjusted = True

    if length is None:
        d1, d2 = abs_ if abs_ is not None else (0.0, 0.0)
        return ResolvedDistances(r1, r2, d1, d2, adjusted)

    derived1, derived_clamped1 = _clamp(r1 * length, length, tolerance)
    derived2, derived_clamped2 = _clamp(r2 * length, length, tolerance)
    adjusted = adjusted or derived_clamped1 or derived_clamped2
    if abs_ is None:
        return ResolvedDistances(r1, r2, derived1, derived2, adjusted)

    supplied1, supplied_clamped1 = _clamp(abs_[0], length, tolerance)
    supplied2, supplied_clamped2 = _clamp(abs_[1], length, tolerance)
    adjusted = adjusted or supplied_clamped1 or supplied_clamped2

    keep1 = nearly_equal(supplied1, derived1, tolerance)
    keep2 = nearly_equal(supplied2, derived2, tolerance)
    if not (keep1 and keep2):
        adjusted = True
    return ResolvedDistances(
        r1,
        r2,
        supplied1 if keep1 else derived1,
        supplied2 if keep2 else derived2,
        adjusted,
    )


def _from_absolute(
    abs_: tuple[float, float],
    length: float,
    tolerance: float,
) -> ResolvedDistances:
    d1, clamped1 = _clamp(abs_[0], length, tolerance)
    d2, clamped2 = _clamp(abs_[1], length, tolerance)
    adjusted = clamped1 or clamped2
    if d1 > d2:
        d1, d2 = d2, d1
        adjusted = True

    r1, rel_clamped1 = _clamp(d1 / length, 1.0, tolerance)
    r2, rel_clamped2 = _clamp(d2 / length, 1.0, tolerance)
    adjusted = adjusted or rel_clamped1 or rel_clamped2
    return ResolvedDistances(r1, r2, d1, d2, adjusted)


def nearly_equal(a: float, b: float, tolerance: float = DEFAULT_DISTANCE_TOLERANCE) -> bool:
    """Compare with a tolerance scaled by ``max(1, |a| + |b|)``."""

    scale = max(1.0, abs(a) + abs(b))
    return abs(a - b) <= tolerance * scale


def _clamp(value: float, upper: float, tolerance: float) -> tuple[float, bool]:
    clamped = min(max(value, 0.0), max(upper, 0.0))
    return clamped, not nearly_equal(clamped, value, tolerance)


def _usable_pair(pair: Sequence[float | None] | None) -> tuple[float, float] | None:
    if pair is None or len(pair) != 2:
        return None
    first, second = pair
    if first is None or second is None:
        return None
    if not (math.isfinite(first) and math.isfinite(second)):
        return None
    return float(first), float(second)


def _is_usable_length(length: float | None, min_length: float) -> bool:
    return length is not None and math.isfinite(length) and length > min_length
