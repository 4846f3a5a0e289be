"""Resolve parsed rows into concrete load assignments.

Responsibilities of this stage:
- reject rows whose frame is absent from the live model (counted as failed)
- clamp load type and direction codes to their valid ranges
- pick the coordinate system (sheet override, else derived from direction)
- normalise distances against the frame length, looked up once per frame

Rows keep their original order; row indices flow through for reporting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from structsync.domain.errors import IssueKind
from structsync.domain.types import GLOBAL, LOCAL, LoadType, PreparedAssignment

from .normalize import resolve_distances
from .parse import skip_reason
from .report import RowIssue
from .settings import MAX_DIRECTION, MIN_DIRECTION, ReconcileSettings

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from structsync.domain.types import LoadRow

log = logging.getLogger(__name__)

type LengthLookup = Callable[[str], float | None]


@dataclass(slots=True)
class PreparationResult:
    prepared: list[PreparedAssignment] = field(default_factory=list["PreparedAssignment"])
    skipped: list[RowIssue] = field(default_factory=list["RowIssue"])
    failed: list[RowIssue] = field(default_factory=list["RowIssue"])
    normalized: list[RowIssue] = field(default_factory=list["RowIssue"])


class LengthCache:
    """Memoise frame-length lookups for one run, keyed case-insensitively."""

    def __init__(self, lookup: LengthLookup) -> None:
        self._lookup = lookup
        self._lengths: dict[str, float | None] = {}
        self.misses = 0

    def __call__(self, name: str) -> float | None:
        folded = name.strip().casefold()
        if folded not in self._lengths:
            self.misses += 1
            self._lengths[folded] = self._lookup(name)
        return self._lengths[folded]


class ExistingNames:
    """Case-insensitive membership over the model's frame names.

    ``None`` means the model could not list its frames; every name is then
    treated as present and the apply call decides.
    """

    def __init__(self, names: Iterable[str] | None) -> None:
        self._known = None if names is None else {name.strip().casefold() for name in names}

    @property
    def available(self) -> bool:
        return self._known is not None

    def __contains__(self, name: object) -> bool:
        if self._known is None:
            return True
        return isinstance(name, str) and name.strip().casefold() in self._known


def prepare_assignments(
    rows: Iterable[LoadRow],
    *,
    existing: ExistingNames,
    frame_length: LengthLookup,
    settings: ReconcileSettings,
) -> PreparationResult:
    """Prepare every row; rows failing the parse-time checks are skipped here too."""

    result = PreparationResult()
    for row in rows:
        key, value1, value2 = row.key, row.value1, row.value2
        reason = skip_reason(row)
        if reason is not None or key is None or value1 is None or value2 is None:
            result.skipped.append(_issue(row, IssueKind.ROW_VALIDATION, reason))
            continue

        if key.frame_name not in existing:
            result.failed.append(_issue(row, IssueKind.EXTERNAL_REFERENCE, "frame not in model"))
            continue

        resolved = resolve_distances(
            frame_length(key.frame_name),
            (row.rel_dist1, row.rel_dist2),
            (row.dist1, row.dist2),
            settings=settings,
        )
        if resolved is None:
            result.skipped.append(
                _issue(row, IssueKind.ROW_VALIDATION, "distances could not be resolved")
            )
            continue
        if resolved.adjusted:
            result.normalized.append(_issue(row, IssueKind.NORMALIZED, None))

        direction = clamp_direction(row.direction, settings)
        result.prepared.append(
            PreparedAssignment(
                row_index=row.row_index,
                key=key,
                load_type=clamp_load_type(row.load_type, settings),
                direction=direction,
                coordinate_system=resolve_coordinate_system(
                    direction, row.coordinate_system, settings
                ),
                rel_dist1=resolved.rel_dist1,
                rel_dist2=resolved.rel_dist2,
                dist1=resolved.dist1,
                dist2=resolved.dist2,
                value1=value1,
                value2=value2,
            )
        )

    log.debug(
        "Prepared %s assignments (%s skipped, %s failed, %s normalized)",
        len(result.prepared),
        len(result.skipped),
        len(result.failed),
        len(result.normalized),
    )
    return result


def clamp_load_type(load_type: int | None, settings: ReconcileSettings) -> int:
    if load_type in (LoadType.UNIFORM, LoadType.TRAPEZOIDAL):
        return int(load_type)
    return int(settings.default_load_type)


def clamp_direction(direction: int | None, settings: ReconcileSettings) -> int:
    if direction is None or not MIN_DIRECTION <= direction <= MAX_DIRECTION:
        return settings.default_direction
    return direction


def resolve_coordinate_system(
    direction: int,
    override: str | None,
    settings: ReconcileSettings,
) -> str:
    if override is not None and override.strip():
        return override.strip()
    return LOCAL if abs(direction) < settings.local_direction_threshold else GLOBAL


def _issue(row: LoadRow, kind: IssueKind, reason: str | None) -> RowIssue:
    return RowIssue(row_index=row.row_index, label=row.label, kind=kind, reason=reason)
