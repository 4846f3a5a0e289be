"""Intra-batch duplicate handling for identity keys.

Rows are never reordered. Dropped rows are reported as skipped with the
``duplicate`` issue kind so the caller can surface them.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from structsync.domain.errors import IssueKind
from structsync.domain.types import DuplicatePolicy

from .report import RowIssue

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from structsync.domain.types import IdentityKey


@dataclass(slots=True)
class DeduplicationResult[TRow]:
    kept: list[TRow] = field(default_factory=list)
    dropped: list[RowIssue] = field(default_factory=list["RowIssue"])


def deduplicate_rows[TRow](
    rows: Sequence[TRow],
    *,
    policy: DuplicatePolicy,
    key_of: Callable[[TRow], IdentityKey | str | None],
    label_of: Callable[[TRow], str],
    index_of: Callable[[TRow], int],
) -> DeduplicationResult[TRow]:
    """Apply ``policy`` to rows sharing a key; rows without a key pass through."""

    if policy is DuplicatePolicy.KEEP_ALL:
        return DeduplicationResult(kept=list(rows))

    positions: dict[object, list[int]] = defaultdict(list)
    for position, row in enumerate(rows):
        key = _fold(key_of(row))
        if key is not None:
            positions[key].append(position)

    survivors: set[int] = set()
    for group in positions.values():
        if len(group) == 1:
            survivors.add(group[0])
        elif policy is DuplicatePolicy.FIRST_WINS:
            survivors.add(group[0])
        elif policy is DuplicatePolicy.LAST_WINS:
            survivors.add(group[-1])

    result: DeduplicationResult[TRow] = DeduplicationResult()
    for position, row in enumerate(rows):
        if _fold(key_of(row)) is None or position in survivors:
            result.kept.append(row)
            continue
        result.dropped.append(
            RowIssue(
                row_index=index_of(row),
                label=label_of(row),
                kind=IssueKind.DUPLICATE,
                reason=f"duplicate key ({policy.value})",
            )
        )
    return result


def _fold(key: IdentityKey | str | None) -> object:
    if isinstance(key, str):
        folded = key.strip().casefold()
        return folded or None
    return key
