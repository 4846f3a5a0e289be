"""Baseline diffing for auto-removal.

Only keys present in the previous snapshot and absent from the current sheet
become removal candidates. No snapshot means nothing to remove.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from structsync.domain.types import IdentityKey

if TYPE_CHECKING:
    from collections.abc import Iterable

    from structsync.domain.types import LoadRow

    from .report import ValueTable


def desired_keys(rows: Iterable[LoadRow]) -> frozenset[IdentityKey]:
    """Collect identity keys from every row that carries a valid key."""

    return frozenset(key for row in rows if (key := row.key) is not None)


def removal_candidates(
    baseline: Iterable[IdentityKey] | None,
    desired: Iterable[IdentityKey],
) -> frozenset[IdentityKey]:
    """Return ``baseline - desired``; an absent baseline yields no candidates."""

    if baseline is None:
        return frozenset()
    wanted = frozenset(desired)
    return frozenset(key for key in baseline if key.is_valid and key not in wanted)


def keys_from_table(table: ValueTable) -> frozenset[IdentityKey]:
    """Rebuild identity keys from a previous run's ``FrameName``/``LoadPattern`` columns."""

    try:
        frames = table.column("FrameName")
        patterns = table.column("LoadPattern")
    except KeyError:
        return frozenset()
    keys: set[IdentityKey] = set()
    for frame, pattern in zip(frames, patterns, strict=True):
        key = IdentityKey.parse(
            frame if isinstance(frame, str) else None,
            pattern if isinstance(pattern, str) else None,
        )
        if key is not None:
            keys.add(key)
    return frozenset(keys)
