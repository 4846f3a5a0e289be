from __future__ import annotations

from structsync.domain.errors import IssueKind
from structsync.domain.reconciliation.apply import (
    APPLY_PROGRESS_LABEL,
    apply_assignments,
    reconcile,
    remove_missing,
)
from structsync.domain.reconciliation.prepare import ExistingNames
from structsync.domain.types import IdentityKey, PreparedAssignment
from tests.helpers.fakes import FakeModel, RecordingView


def _assignment(row_index: int, frame: str, pattern: str = "DEAD") -> PreparedAssignment:
    return PreparedAssignment(
        row_index=row_index,
        key=IdentityKey(frame, pattern),
        load_type=1,
        direction=10,
        coordinate_system="Global",
        rel_dist1=0.0,
        rel_dist2=1.0,
        dist1=0.0,
        dist2=5.0,
        value1=1.0,
        value2=1.0,
    )


def test_remove_missing_runs_in_key_order_and_skips_absent_frames() -> None:
    model = FakeModel(frames={"B1": 1.0, "a2": 1.0})
    candidates = [IdentityKey("B1", "LIVE"), IdentityKey("GONE", "DEAD"), IdentityKey("A2", "X")]

    outcomes = remove_missing(model, candidates, ExistingNames(model.frames))

    assert [str(outcome) for outcome in outcomes] == [
        "Removed A2 / X",
        "Removed B1 / LIVE",
    ]
    assert model.removed == [IdentityKey("A2", "X"), IdentityKey("B1", "LIVE")]


def test_remove_missing_records_failures() -> None:
    model = FakeModel(frames={"B1": 1.0}, reject_removals=True)

    (outcome,) = remove_missing(model, [IdentityKey("B1", "LIVE")], ExistingNames(None))

    assert outcome.removed is False
    assert str(outcome) == "Failed to remove B1 / LIVE"


def test_apply_continues_after_failures() -> None:
    model = FakeModel(reject_loads={"B2"}, raise_on_loads={"B3"})
    events: list[tuple[int, int, str]] = []

    applied, failures = apply_assignments(
        model,
        [_assignment(0, "B1"), _assignment(1, "B2"), _assignment(2, "B3"), _assignment(3, "B4")],
        replace=False,
        progress=lambda current, total, label: events.append((current, total, label)),
    )

    assert applied == 2
    assert [item.key.frame_name for item, _ in model.assigned] == ["B1", "B4"]
    assert all(replace is False for _, replace in model.assigned)
    assert [(issue.row_index, issue.reason) for issue in failures] == [
        (1, "model reported failure"),
        (2, "model exploded on B3"),
    ]
    assert all(issue.kind is IssueKind.EXTERNAL_APPLY for issue in failures)
    assert events[0] == (0, 4, APPLY_PROGRESS_LABEL)
    assert events[-1] == (4, 4, APPLY_PROGRESS_LABEL)


def test_failing_progress_sink_does_not_abort() -> None:
    model = FakeModel()

    def broken(current: int, total: int, label: str) -> None:
        raise RuntimeError("widget closed")

    applied, failures = apply_assignments(
        model, [_assignment(0, "B1")], replace=True, progress=broken
    )

    assert applied == 1
    assert failures == []


def test_reconcile_refreshes_after_writes() -> None:
    model = FakeModel(frames={"B1": 1.0, "B2": 1.0})
    views = [RecordingView(), RecordingView(fail=True), RecordingView()]

    result = reconcile(
        model,
        [_assignment(0, "B1")],
        removal_candidates={IdentityKey("B2", "LIVE")},
        existing=ExistingNames(model.frames),
        replace=True,
        views=views,
    )

    assert model.calls == ["remove_distributed_load", "set_distributed_load", "refresh_view"]
    assert result.applied == 1
    assert result.removed == 1
    assert result.views_scheduled == 2
    assert [view.stale for view in views] == [1, 0, 1]


def test_reconcile_without_successful_writes_skips_refresh() -> None:
    model = FakeModel(reject_loads={"B1"})
    view = RecordingView()

    result = reconcile(
        model,
        [_assignment(0, "B1")],
        existing=ExistingNames(None),
        replace=True,
        views=[view],
    )

    assert result.wrote_anything is False
    assert model.refreshes == 0
    assert view.stale == 0
    assert result.views_scheduled == 0
