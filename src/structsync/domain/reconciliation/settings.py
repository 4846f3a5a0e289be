"""Tunable constants for one reconciliation run."""

from __future__ import annotations

from dataclasses import dataclass

from structsync.domain.errors import ConfigurationError
from structsync.domain.types import DuplicatePolicy, LoadType

DEFAULT_DISTANCE_TOLERANCE = 1e-6
DEFAULT_LENGTH_TOLERANCE = 1e-9
DEFAULT_LOCAL_DIRECTION_THRESHOLD = 4
DEFAULT_DIRECTION = 10
MIN_DIRECTION = 1
MAX_DIRECTION = 11


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconcileSettings:
    """Run-level knobs.

    ``distance_tolerance`` scales the "nearly equal" comparison used by the
    distance normaliser and ``length_tolerance`` is the smallest reference
    length treated as usable. Direction codes whose magnitude is below
    ``local_direction_threshold`` resolve to the local coordinate system.
    """

    distance_tolerance: float = DEFAULT_DISTANCE_TOLERANCE
    length_tolerance: float = DEFAULT_LENGTH_TOLERANCE
    local_direction_threshold: int = DEFAULT_LOCAL_DIRECTION_THRESHOLD
    default_direction: int = DEFAULT_DIRECTION
    default_load_type: LoadType = LoadType.UNIFORM
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.FIRST_WINS
    replace: bool = True
    auto_remove: bool = True

    def __post_init__(self) -> None:
        if not self.distance_tolerance > 0:
            raise ConfigurationError("distance_tolerance must be positive")
        if not self.length_tolerance > 0:
            raise ConfigurationError("length_tolerance must be positive")
        if self.local_direction_threshold < 0:
            raise ConfigurationError("local_direction_threshold must be non-negative")
        if not MIN_DIRECTION <= self.default_direction <= MAX_DIRECTION:
            raise ConfigurationError(
                f"default_direction must lie in [{MIN_DIRECTION}, {MAX_DIRECTION}]"
            )
