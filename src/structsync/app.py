"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from structsync.adapters.model_service import ModelServiceClient
from structsync.adapters.spreadsheet import OpenpyxlSheetSource
from structsync.adapters.sqlalchemy import (
    SqlAlchemyBaselineStore,
    SqlAlchemySessionStateStore,
    is_started,
    startup,
)
from structsync.config import get_reconcile_settings
from structsync.domain.notify import progress_status
from structsync.domain.points import (
    NO_PREVIOUS_POINT_RUN,
    POINT_REPORT_HEADERS,
    POINT_SHEET_NAME,
    PointSyncEngine,
    PointSyncRequest,
)
from structsync.domain.reconciliation import ReconciliationEngine, ReconciliationRequest
from structsync.domain.reconciliation.diff import keys_from_table
from structsync.domain.reconciliation.parse import LOAD_HEADERS, LOAD_SHEET_NAME
from structsync.domain.session import EdgeTriggeredSession, idle_output

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structsync.config import ModelServiceConfig
    from structsync.domain.ports import (
        BaselineStore,
        DependentView,
        ModelSessionFactory,
        ProgressSink,
        SessionStateStore,
        TabularSource,
    )
    from structsync.domain.reconciliation import ReconcileSettings, RunOutput
    from structsync.domain.types import DuplicatePolicy, IdentityKey


log = getLogger(__name__)


class InMemoryBaselineStore:
    def __init__(self) -> None:
        self._snapshots: dict[str, frozenset[IdentityKey]] = {}

    def load(self, scope: str) -> frozenset[IdentityKey] | None:
        return self._snapshots.get(scope)

    def save(self, scope: str, keys: frozenset[IdentityKey]) -> None:
        self._snapshots[scope] = frozenset(keys)


def build_model_session_factory(config: ModelServiceConfig | None = None) -> ModelSessionFactory:
    """Return a factory opening one HTTP model session per call."""

    def open_session() -> ModelServiceClient:
        return ModelServiceClient(config)

    return open_session


def log_progress(current: int, total: int, label: str) -> None:
    log.debug(progress_status(current, total, label, "item"))


def workbook_scope(kind: str, path: Path | str, sheet_name: str) -> str:
    """Key persisted state by command, resolved workbook path and sheet."""

    return f"{kind}:{Path(path).expanduser().resolve()}:{sheet_name.strip().casefold()}"


def _ensure_storage() -> None:
    if not is_started():
        startup()


def sync_frame_loads(
    *,
    path: Path | str,
    sheet_name: str | None = None,
    trigger: bool | None = None,
    settings: ReconcileSettings | None = None,
    source: TabularSource | None = None,
    open_model: ModelSessionFactory | None = None,
    baseline_store: BaselineStore | None = None,
    state_store: SessionStateStore | None = None,
    progress: ProgressSink | None = log_progress,
    views: Sequence[DependentView] = (),
) -> RunOutput:
    """Assign frame distributed loads from a workbook sheet.

    ``trigger=None`` pulses the trigger (low, then high) so the run always
    happens; ``True``/``False`` feed the edge-triggered controller directly.
    Missing stores default to the SQLAlchemy-backed ones.
    """

    if baseline_store is None or state_store is None:
        _ensure_storage()
    sheet = (sheet_name or "").strip() or LOAD_SHEET_NAME
    scope = workbook_scope("loads", path, sheet)
    baselines = baseline_store or SqlAlchemyBaselineStore()
    engine = ReconciliationEngine(
        source=source or OpenpyxlSheetSource(),
        open_model=open_model or build_model_session_factory(),
        settings=settings or get_reconcile_settings(),
        progress=progress,
        views=views,
    )
    log.info("Starting frame load sync: path=%s, sheet=%s, trigger=%s", path, sheet, trigger)

    def pipeline() -> RunOutput:
        baseline = baselines.load(scope)
        output = engine.run(
            ReconciliationRequest(path=path, sheet_name=sheet, baseline=baseline)
        )
        if output.ok:
            baselines.save(scope, keys_from_table(output.table) | output.pending_removals)
        return output

    session = EdgeTriggeredSession(
        pipeline=pipeline,
        idle=idle_output(LOAD_HEADERS),
        store=state_store or SqlAlchemySessionStateStore(scope),
    )
    return _invoke(session, trigger)


def sync_point_coordinates(
    *,
    path: Path | str,
    sheet_name: str | None = None,
    trigger: bool | None = None,
    start_row: int = 2,
    scale: float = 1.0,
    tolerance: float = 1e-6,
    duplicate_policy: DuplicatePolicy | None = None,
    source: TabularSource | None = None,
    open_model: ModelSessionFactory | None = None,
    state_store: SessionStateStore | None = None,
    progress: ProgressSink | None = log_progress,
    views: Sequence[DependentView] = (),
) -> RunOutput:
    """Move model points to the coordinates listed in a workbook sheet."""

    if state_store is None:
        _ensure_storage()
    sheet = (sheet_name or "").strip() or POINT_SHEET_NAME
    policy = duplicate_policy or get_reconcile_settings().duplicate_policy
    engine = PointSyncEngine(
        source=source or OpenpyxlSheetSource(),
        open_model=open_model or build_model_session_factory(),
        duplicate_policy=policy,
        progress=progress,
        views=views,
    )
    request = PointSyncRequest(
        path=path,
        sheet_name=sheet,
        start_row=start_row,
        scale=scale,
        tolerance=tolerance,
    )
    log.info("Starting point sync: path=%s, sheet=%s, trigger=%s", path, sheet, trigger)

    session = EdgeTriggeredSession(
        pipeline=lambda: engine.run(request),
        idle=idle_output(POINT_REPORT_HEADERS, NO_PREVIOUS_POINT_RUN),
        store=state_store or SqlAlchemySessionStateStore(workbook_scope("points", path, sheet)),
    )
    return _invoke(session, trigger)


def _invoke(session: EdgeTriggeredSession, trigger: bool | None) -> RunOutput:
    if trigger is None:
        session.invoke(False)
        return session.invoke(True)
    return session.invoke(trigger)

