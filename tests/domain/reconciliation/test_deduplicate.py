from __future__ import annotations

from structsync.domain.errors import IssueKind
from structsync.domain.reconciliation.deduplicate import DeduplicationResult, deduplicate_rows
from structsync.domain.reconciliation.parse import parse_load_rows
from structsync.domain.types import DuplicatePolicy, LoadRow
from tests.helpers.fakes import load_row


def _rows() -> list[LoadRow]:
    parsed = parse_load_rows(
        [
            load_row("B1", "DEAD", values=(1.0, 1.0)),
            load_row("B2", "DEAD"),
            load_row("b1", "dead", values=(2.0, 2.0)),
            load_row("B1", "LIVE"),
        ]
    )
    return parsed.rows


def _dedupe(rows: list[LoadRow], policy: DuplicatePolicy) -> DeduplicationResult[LoadRow]:
    return deduplicate_rows(
        rows,
        policy=policy,
        key_of=lambda row: row.key,
        label_of=lambda row: row.label,
        index_of=lambda row: row.row_index,
    )


def test_first_wins_keeps_earliest_duplicate() -> None:
    result = _dedupe(_rows(), DuplicatePolicy.FIRST_WINS)

    assert [row.row_index for row in result.kept] == [0, 1, 3]
    (dropped,) = result.dropped
    assert dropped.row_index == 2
    assert dropped.kind is IssueKind.DUPLICATE
    assert dropped.reason == "duplicate key (first_wins)"


def test_last_wins_keeps_latest_duplicate_in_place() -> None:
    result = _dedupe(_rows(), DuplicatePolicy.LAST_WINS)

    assert [row.row_index for row in result.kept] == [1, 2, 3]
    assert [issue.row_index for issue in result.dropped] == [0]


def test_reject_drops_every_duplicate() -> None:
    result = _dedupe(_rows(), DuplicatePolicy.REJECT)

    assert [row.row_index for row in result.kept] == [1, 3]
    assert [issue.row_index for issue in result.dropped] == [0, 2]


def test_keep_all_passes_rows_through() -> None:
    rows = _rows()

    result = _dedupe(rows, DuplicatePolicy.KEEP_ALL)

    assert result.kept == rows
    assert result.dropped == []


def test_string_keys_fold_case_and_blanks_pass_through() -> None:
    names = ["P1", "", "p1 ", ""]

    result = deduplicate_rows(
        names,
        policy=DuplicatePolicy.FIRST_WINS,
        key_of=lambda name: name,
        label_of=lambda name: name,
        index_of=names.index,
    )

    assert result.kept == ["P1", "", ""]
    assert len(result.dropped) == 1
