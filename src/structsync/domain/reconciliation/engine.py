"""Orchestrator for one frame-load reconciliation run.

The engine composes the stages (parse, deduplicate, diff, prepare, apply) and
the ports they need, but does not prescribe concrete adapters. Everything that
can go wrong is turned into diagnostic messages on the returned ``RunOutput``.

Fatal problems (configuration, unreadable source) surface before any model
session is opened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from structsync.domain.errors import ConfigurationError, ReconciliationError
from structsync.domain.ports import SheetLayout

from .apply import reconcile
from .deduplicate import deduplicate_rows
from .diff import desired_keys, removal_candidates
from .parse import LOAD_HEADERS, LOAD_SHEET_NAME, parse_load_rows, validate_headers
from .prepare import ExistingNames, LengthCache, prepare_assignments
from .report import RunOutput, ValueTable, format_issues, plural
from .settings import ReconcileSettings

if TYPE_CHECKING:
    from collections.abc import Sequence

    from structsync.domain.ports import (
        DependentView,
        ModelSessionFactory,
        ProgressSink,
        StructuralModel,
        TabularSource,
    )
    from structsync.domain.types import IdentityKey, LoadRow

    from .apply import ApplyResult
    from .parse import ParsedSheet
    from .prepare import PreparationResult
    from .report import RowIssue

log = logging.getLogger(__name__)

LOAD_LAYOUT = SheetLayout(
    headers=LOAD_HEADERS,
    header_row=1,
    start_column=2,
    progress_label="Reading Excel",
)

DEPENDENT_VIEW_LABEL = "dependent load view"


@dataclass(frozen=True, slots=True, kw_only=True)
class ReconciliationRequest:
    """Inputs for one run; ``baseline`` is the previous run's key snapshot, if any."""

    path: Path | str | None
    sheet_name: str | None = None
    baseline: frozenset[IdentityKey] | None = None


@dataclass(slots=True, kw_only=True)
class ReconciliationEngine:
    """Run the full pipeline from worksheet rows to model writes."""

    source: TabularSource
    open_model: ModelSessionFactory | None
    settings: ReconcileSettings = field(default_factory=ReconcileSettings)
    progress: ProgressSink | None = None
    views: Sequence[DependentView] = ()

    def run(self, request: ReconciliationRequest) -> RunOutput:
        messages: list[str] = []
        removed: tuple[str, ...] = ()
        pending: frozenset[IdentityKey] = frozenset()
        table = ValueTable.empty(LOAD_HEADERS)
        try:
            open_model, path, sheet_name = self._check_request(request)
            parsed = self._read(path, sheet_name)
            table = load_table(parsed.rows)
            with open_model() as model:
                result, prepared = self._write(model, parsed, request.baseline)
            removed = tuple(str(outcome) for outcome in result.removals)
            pending = result.failed_removals
            messages.extend(removal_messages(result))
            messages.extend(run_messages(sheet_name, parsed, prepared, result))
        except ReconciliationError as exc:
            log.error("Reconciliation aborted: %s", exc)
            messages.append(f"Error: {exc}")
            return RunOutput(table, tuple(messages), removed, error=str(exc))
        except Exception as exc:
            log.exception("Reconciliation failed unexpectedly")
            message = str(exc) or type(exc).__name__
            messages.append(f"Error: {message}")
            return RunOutput(table, tuple(messages), removed, error=message)
        return RunOutput(table, tuple(messages), removed, pending_removals=pending)

    def _check_request(
        self, request: ReconciliationRequest
    ) -> tuple[ModelSessionFactory, Path, str]:
        if self.open_model is None:
            raise ConfigurationError("No model session configured.")
        if request.path is None or not str(request.path).strip():
            raise ConfigurationError("Workbook path is empty.")
        sheet_name = (request.sheet_name or "").strip() or LOAD_SHEET_NAME
        return self.open_model, Path(request.path), sheet_name

    def _read(self, path: Path, sheet_name: str) -> ParsedSheet:
        data = self.source.read(path, sheet_name, LOAD_LAYOUT, progress=self.progress)
        validate_headers(data.headers, LOAD_HEADERS, start_column=LOAD_LAYOUT.start_column)
        parsed = parse_load_rows(data.rows)
        log.info("Read %s data rows from sheet %r", len(parsed.rows), sheet_name)
        return parsed

    def _write(
        self,
        model: StructuralModel,
        parsed: ParsedSheet,
        baseline: frozenset[IdentityKey] | None,
    ) -> tuple[ApplyResult, PreparationResult]:
        settings = self.settings
        model.unlock()
        names = model.frame_names()
        if names is None:
            log.warning("Could not list model frames; existence checks disabled for this run")
        existing = ExistingNames(names)

        candidates: frozenset[IdentityKey] = frozenset()
        if settings.auto_remove:
            candidates = removal_candidates(baseline, desired_keys(parsed.rows))

        deduplicated = deduplicate_rows(
            parsed.usable,
            policy=settings.duplicate_policy,
            key_of=lambda row: row.key,
            label_of=lambda row: row.label,
            index_of=lambda row: row.row_index,
        )
        prepared = prepare_assignments(
            deduplicated.kept,
            existing=existing,
            frame_length=LengthCache(model.frame_length),
            settings=settings,
        )
        prepared.skipped.extend(deduplicated.dropped)

        result = reconcile(
            model,
            prepared.prepared,
            removal_candidates=candidates,
            existing=existing,
            replace=settings.replace,
            progress=self.progress,
            views=self.views,
        )
        return result, prepared


def load_table(rows: Sequence[LoadRow]) -> ValueTable:
    """Column-wise view of the parsed sheet, one column per load header."""

    return ValueTable.from_rows(
        LOAD_HEADERS,
        (
            (
                row.frame_name,
                row.load_pattern,
                row.load_type,
                row.coordinate_system,
                row.direction,
                row.rel_dist1,
                row.rel_dist2,
                row.dist1,
                row.dist2,
                row.value1,
                row.value2,
            )
            for row in rows
        ),
    )


def removal_messages(result: ApplyResult) -> list[str]:
    if not result.removals:
        return []
    if result.removed > 0:
        noun = "combo" if result.removed == 1 else "combos"
        return [f"Auto-removed {result.removed} frame/pattern {noun} missing from the sheet."]
    return ["Attempted to auto-remove frame/pattern combos, but the model reported failures."]


def run_messages(
    sheet_name: str,
    parsed: ParsedSheet,
    prepared: PreparationResult,
    result: ApplyResult,
) -> list[str]:
    """Summary first, then itemised failures, skips and normalised rows."""

    if not parsed.rows:
        messages = [f"Read 0 data rows from sheet '{sheet_name}'. Nothing to assign."]
    else:
        failed = _by_row(prepared.failed + result.failed)
        skipped = _by_row(parsed.skipped + prepared.skipped)
        messages = [
            f"Read {len(parsed.rows)} data rows from sheet '{sheet_name}'.",
            f"{plural(result.applied, 'member')} successfully assigned, "
            f"{plural(len(failed), 'member')} unsuccessful.",
        ]
        if failed:
            messages.append(format_issues("Unsuccessful members", failed))
        if skipped:
            messages.append(format_issues("Skipped members", skipped))
        if prepared.normalized:
            messages.append(format_issues("Normalized distance inputs", prepared.normalized))
    if result.views_scheduled > 0:
        messages.append(
            f"Scheduled refresh for {plural(result.views_scheduled, DEPENDENT_VIEW_LABEL)}."
        )
    return messages


def _by_row(issues: list[RowIssue]) -> list[RowIssue]:
    return sorted(issues, key=lambda issue: issue.row_index)
