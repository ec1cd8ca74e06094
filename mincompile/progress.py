"""Progress tracking for the minimum-version check of one project."""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass
from typing import Any, Callable

import structlog

log = structlog.get_logger(__name__)


class MirrorState(enum.Enum):
    UNCONFIGURED = "unconfigured"
    MAIN_TARGET_READY = "main_target_ready"
    MIRROR_TARGET_WIRED = "mirror_target_wired"
    DEPENDENCY_RESOLVING = "dependency_resolving"
    DEPENDENCY_BOUND = "dependency_bound"
    COMPILING = "compiling"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS: dict[MirrorState, set[MirrorState]] = {
    MirrorState.UNCONFIGURED: {MirrorState.MAIN_TARGET_READY, MirrorState.FAILED},
    MirrorState.MAIN_TARGET_READY: {MirrorState.MIRROR_TARGET_WIRED, MirrorState.FAILED},
    MirrorState.MIRROR_TARGET_WIRED: {MirrorState.DEPENDENCY_RESOLVING, MirrorState.FAILED},
    MirrorState.DEPENDENCY_RESOLVING: {MirrorState.DEPENDENCY_BOUND, MirrorState.FAILED},
    MirrorState.DEPENDENCY_BOUND: {MirrorState.COMPILING, MirrorState.FAILED},
    MirrorState.COMPILING: {MirrorState.DONE, MirrorState.FAILED},
    MirrorState.DONE: set(),
    MirrorState.FAILED: set(),
}


@dataclass
class PhaseProgress:
    state: MirrorState
    start_time: float | None = None
    end_time: float | None = None
    detail: str = ""
    error: str | None = None

    @property
    def duration(self) -> float | None:
        if self.start_time and self.end_time:
            return round(self.end_time - self.start_time, 2)
        return None


class ProgressTracker:
    """Record state transitions with timing. Illegal transitions raise ValueError."""

    def __init__(self, project: str = "") -> None:
        self.project = project
        self.phases: list[PhaseProgress] = [
            PhaseProgress(MirrorState.UNCONFIGURED, start_time=time.monotonic())
        ]
        self.callbacks: list[Callable[[PhaseProgress], None]] = []

    @property
    def state(self) -> MirrorState:
        return self.phases[-1].state

    @property
    def history(self) -> list[MirrorState]:
        return [p.state for p in self.phases]

    @property
    def finished(self) -> bool:
        return self.state in (MirrorState.DONE, MirrorState.FAILED)

    def can_advance(self, state: MirrorState) -> bool:
        return state in _TRANSITIONS[self.state]

    def advance(self, state: MirrorState, detail: str = "", error: str | None = None) -> None:
        if not self.can_advance(state):
            raise ValueError(f"Illegal transition {self.state.value} -> {state.value}")
        now = time.monotonic()
        self.phases[-1].end_time = now
        p = PhaseProgress(state, start_time=now, detail=detail, error=error)
        if state in (MirrorState.DONE, MirrorState.FAILED):
            p.end_time = now
        self.phases.append(p)
        log.debug("mirror.state", project=self.project, state=state.value, detail=detail)
        self._notify(p)

    def fail(self, error: str) -> None:
        if self.finished:
            return
        self.advance(MirrorState.FAILED, error=error)

    def get_summary(self) -> dict[str, Any]:
        total_duration = sum(p.duration or 0 for p in self.phases)
        return {
            "state": self.state.value,
            "phases": [
                {
                    "state": p.state.value,
                    "duration": p.duration,
                    "detail": p.detail,
                    "error": p.error,
                }
                for p in self.phases
            ],
            "total_duration": round(total_duration, 2),
        }

    def _notify(self, p: PhaseProgress) -> None:
        for cb in self.callbacks:
            try:
                cb(p)
            except Exception:
                log.debug("progress.callback_error", state=p.state.value, exc_info=True)
