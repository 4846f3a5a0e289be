"""Edge-triggered run controller.

A host re-evaluates its components far more often than a user means to push
data into the model. The controller only runs the pipeline on a false to true
transition of the trigger and otherwise replays the stored output untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import TYPE_CHECKING

from structsync.domain.reconciliation.report import RunOutput, ValueTable

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from structsync.domain.ports import SessionStateStore

log = logging.getLogger(__name__)

NO_PREVIOUS_RUN = "No previous run. Toggle 'run' to assign."


class SessionPhase(StrEnum):
    IDLE = "idle"
    READY = "ready"


@dataclass(frozen=True, slots=True)
class SessionState:
    """What survives between invocations: the last trigger value and output."""

    last_trigger: bool = False
    last_output: RunOutput | None = None

    @property
    def phase(self) -> SessionPhase:
        return SessionPhase.READY if self.last_trigger else SessionPhase.IDLE


class InMemorySessionStateStore:
    def __init__(self, initial: SessionState | None = None) -> None:
        self._state = initial or SessionState()

    def load(self) -> SessionState:
        return self._state

    def save(self, state: SessionState) -> None:
        self._state = state


def idle_output(headers: Sequence[str], message: str = NO_PREVIOUS_RUN) -> RunOutput:
    return RunOutput(ValueTable.empty(headers), (message,))


@dataclass(slots=True)
class EdgeTriggeredSession:
    """Run ``pipeline`` on a rising trigger edge; replay the last output otherwise.

    If ``pipeline`` raises, the trigger value is not stored, so the next
    invocation with the trigger held high is treated as a fresh edge.
    """

    pipeline: Callable[[], RunOutput]
    idle: RunOutput
    store: SessionStateStore = field(default_factory=InMemorySessionStateStore)

    def invoke(self, trigger: bool) -> RunOutput:
        state = self.store.load()
        if not (trigger and not state.last_trigger):
            log.debug("No rising edge (trigger=%s, phase=%s); replaying", trigger, state.phase)
            self.store.save(replace(state, last_trigger=trigger))
            return state.last_output if state.last_output is not None else self.idle

        log.info("Rising trigger edge; starting run")
        output = self.pipeline()
        self.store.save(SessionState(last_trigger=True, last_output=output))
        return output
