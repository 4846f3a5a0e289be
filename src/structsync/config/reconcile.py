"""Reconciliation settings read from the environment."""

from __future__ import annotations

from structsync.domain.reconciliation.settings import (
    DEFAULT_DISTANCE_TOLERANCE,
    DEFAULT_LOCAL_DIRECTION_THRESHOLD,
    ReconcileSettings,
)
from structsync.domain.types import DuplicatePolicy

from .env import env_bool, env_float, env_int, optional_env_var
from .errors import ConfigurationError


def get_duplicate_policy(default: DuplicatePolicy = DuplicatePolicy.FIRST_WINS) -> DuplicatePolicy:
    value = optional_env_var("STRUCTSYNC_DUPLICATE_POLICY")
    if value is None:
        return default
    return parse_duplicate_policy(value)


def parse_duplicate_policy(value: str) -> DuplicatePolicy:
    normalized = value.strip().casefold().replace("-", "_")
    try:
        return DuplicatePolicy(normalized)
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in DuplicatePolicy)
        raise ConfigurationError(
            f"Unknown duplicate policy {value!r}; expected one of: {choices}"
        ) from exc


def get_reconcile_settings() -> ReconcileSettings:
    """Build run settings, letting environment variables override the defaults."""

    return ReconcileSettings(
        distance_tolerance=env_float("STRUCTSYNC_DISTANCE_TOLERANCE", DEFAULT_DISTANCE_TOLERANCE),
        local_direction_threshold=env_int(
            "STRUCTSYNC_LOCAL_DIRECTION_THRESHOLD", DEFAULT_LOCAL_DIRECTION_THRESHOLD
        ),
        duplicate_policy=get_duplicate_policy(),
        replace=env_bool("STRUCTSYNC_REPLACE", True),
        auto_remove=env_bool("STRUCTSYNC_AUTO_REMOVE", True),
    )
