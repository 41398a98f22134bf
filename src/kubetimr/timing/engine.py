"""
Timing state machine.

Pure transitions over an immutable EngineState. Every transition takes the
current state plus one clock reading and returns the next state:

    idle/stopped --start--> inspection --begin_solve--> running --stop--> stopped
    idle/stopped --start--> running        (inspection disabled)

A transition requested from a state with no such edge returns the input
state unchanged. Input arrives from keyboards and touch screens that
repeat and race, so stray events are ignored rather than rejected.

Example:
    >>> state = new_engine_state(TimingConfig(inspection_duration_ms=15000))
    >>> state = handle_toggle(state, now=0)        # inspection
    >>> state = handle_toggle(state, now=16000)    # +2, running
    >>> state = handle_toggle(state, now=26000)    # stopped
    >>> state.result.final_duration_ms
    12000
"""

import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Protocol

from .result import (
    PLUS2_MS,
    Penalty,
    TimingResult,
    apply_penalty,
    combine_penalties,
)


class TimingState(str, Enum):
    IDLE = "idle"
    INSPECTION = "inspection"
    RUNNING = "running"
    STOPPED = "stopped"


# =============================================================================
# Clocks
# =============================================================================


class Clock(Protocol):
    """Monotonic millisecond time source."""

    def now(self) -> float: ...


class MonotonicClock:
    """Wall-clock-independent clock backed by time.perf_counter()."""

    def now(self) -> float:
        return time.perf_counter() * 1000


class ManualClock:
    """
    Clock that only moves when told to. Used for tests and replays.

    Example:
        >>> clock = ManualClock()
        >>> clock.advance(1500)
        >>> clock.now()
        1500
    """

    def __init__(self, start_ms: float = 0):
        self._now = start_ms

    def now(self) -> float:
        return self._now

    def set(self, ms: float):
        if ms < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = ms

    def advance(self, ms: float):
        self.set(self._now + ms)


# =============================================================================
# Configuration & state
# =============================================================================


@dataclass(frozen=True)
class TimingConfig:
    """
    Engine configuration.

    Attributes:
        inspection_duration_ms: Inspection limit (commonly 0 or 15000). 0 skips inspection.
        enable_inspection_penalties: Apply +2/DNF for inspection overage.
    """

    inspection_duration_ms: float = 0
    enable_inspection_penalties: bool = True

    def __post_init__(self):
        if self.inspection_duration_ms < 0:
            raise ValueError("inspection_duration_ms cannot be negative")


@dataclass(frozen=True)
class EngineState:
    """Snapshot of the timing engine. Never mutated; transitions build new ones."""

    status: TimingState
    config: TimingConfig
    inspection_start_ts: Optional[float] = None
    run_start_ts: Optional[float] = None
    run_end_ts: Optional[float] = None
    inspection_elapsed_ms: float = 0
    inspection_penalty: Penalty = Penalty.NONE
    manual_penalty: Penalty = Penalty.NONE
    result: Optional[TimingResult] = None


def new_engine_state(config: Optional[TimingConfig] = None) -> EngineState:
    """Create an idle engine state."""
    return EngineState(status=TimingState.IDLE, config=config or TimingConfig())


def penalty_for_inspection(
    elapsed_ms: float, limit_ms: float, enabled: bool = True
) -> Penalty:
    """
    Automatic inspection penalty.

    none for elapsed <= limit, +2 through limit + 2000, DNF beyond that.
    Always none when penalties are disabled or there is no limit.
    """
    if not enabled or limit_ms <= 0:
        return Penalty.NONE
    if elapsed_ms <= limit_ms:
        return Penalty.NONE
    if elapsed_ms <= limit_ms + PLUS2_MS:
        return Penalty.PLUS2
    return Penalty.DNF


# =============================================================================
# Transitions
# =============================================================================


def start(state: EngineState, now: float) -> EngineState:
    """Begin inspection (if configured) or start running immediately."""
    if state.status not in (TimingState.IDLE, TimingState.STOPPED):
        return state

    if state.config.inspection_duration_ms > 0:
        return replace(
            state,
            status=TimingState.INSPECTION,
            inspection_start_ts=now,
            inspection_elapsed_ms=0,
            inspection_penalty=Penalty.NONE,
            manual_penalty=Penalty.NONE,
            run_start_ts=None,
            run_end_ts=None,
            result=None,
        )

    return replace(
        state,
        status=TimingState.RUNNING,
        inspection_start_ts=None,
        inspection_elapsed_ms=0,
        inspection_penalty=Penalty.NONE,
        manual_penalty=Penalty.NONE,
        run_start_ts=now,
        run_end_ts=None,
        result=None,
    )


def begin_solve(state: EngineState, now: float) -> EngineState:
    """End inspection and start running, fixing the inspection penalty."""
    if state.status is not TimingState.INSPECTION or state.inspection_start_ts is None:
        return state

    elapsed = now - state.inspection_start_ts
    inspection_penalty = penalty_for_inspection(
        elapsed,
        state.config.inspection_duration_ms,
        state.config.enable_inspection_penalties,
    )
    return replace(
        state,
        status=TimingState.RUNNING,
        inspection_elapsed_ms=elapsed,
        inspection_penalty=inspection_penalty,
        run_start_ts=now,
        run_end_ts=None,
        result=None,
    )


def stop(state: EngineState, now: float) -> EngineState:
    """Stop the running solve and build its TimingResult."""
    if state.status is not TimingState.RUNNING or state.run_start_ts is None:
        return state

    raw = now - state.run_start_ts
    penalty = combine_penalties(state.inspection_penalty, state.manual_penalty)
    result = TimingResult(
        start_ts=state.run_start_ts,
        end_ts=now,
        inspection_duration_ms=state.inspection_elapsed_ms,
        raw_duration_ms=raw,
        penalty=penalty,
        final_duration_ms=apply_penalty(raw, penalty),
    )
    return replace(state, status=TimingState.STOPPED, run_end_ts=now, result=result)


def apply_manual_penalty(state: EngineState, penalty: Penalty) -> EngineState:
    """
    Revise the penalty of a stopped solve.

    The manual penalty is combined with the stored inspection penalty,
    not with the manual penalty it replaces, so a +2 from inspection
    survives clearing the manual penalty back to none.

    Returns the same state object when nothing changes.
    """
    if state.result is None:
        return state

    combined = combine_penalties(state.inspection_penalty, penalty)
    if penalty == state.manual_penalty and combined == state.result.penalty:
        return state

    result = replace(
        state.result,
        penalty=combined,
        final_duration_ms=apply_penalty(state.result.raw_duration_ms, combined),
    )
    return replace(state, manual_penalty=penalty, result=result)


def handle_toggle(state: EngineState, now: float) -> EngineState:
    """
    Single entry point for the start/stop input (spacebar, touch, stackmat).

    - idle/stopped -> start
    - inspection   -> begin_solve
    - running      -> stop
    """
    if state.status in (TimingState.IDLE, TimingState.STOPPED):
        return start(state, now)
    if state.status is TimingState.INSPECTION:
        return begin_solve(state, now)
    if state.status is TimingState.RUNNING:
        return stop(state, now)
    return state


def expire_inspection(state: EngineState, now: float) -> EngineState:
    """
    Force a DNF once inspection has overrun limit + 2000 ms.

    Callers poll this while inspecting. Equivalent to begin_solve and
    stop at the same reading followed by a manual DNF, so the attempt
    is recorded with a zero raw duration.
    """
    if state.status is not TimingState.INSPECTION or state.inspection_start_ts is None:
        return state
    elapsed = now - state.inspection_start_ts
    if elapsed <= state.config.inspection_duration_ms + PLUS2_MS:
        return state

    stopped = stop(begin_solve(state, now), now)
    return apply_manual_penalty(stopped, Penalty.DNF)


# =============================================================================
# Display helpers
# =============================================================================


def elapsed_ms(state: EngineState, now: float) -> float:
    """Time to display: live while running, the raw result once stopped."""
    if state.status is TimingState.RUNNING and state.run_start_ts is not None:
        return now - state.run_start_ts
    if state.status is TimingState.STOPPED and state.result is not None:
        return state.result.raw_duration_ms
    return 0


def inspection_remaining_ms(state: EngineState, now: float) -> Optional[float]:
    """Inspection time left (floored at 0), or None outside inspection."""
    if state.status is not TimingState.INSPECTION or state.inspection_start_ts is None:
        return None
    remaining = state.config.inspection_duration_ms - (now - state.inspection_start_ts)
    return max(0, remaining)


def is_ready_to_start(state: EngineState) -> bool:
    return state.status in (TimingState.IDLE, TimingState.STOPPED)


def is_inspecting(state: EngineState) -> bool:
    return state.status is TimingState.INSPECTION


def is_running(state: EngineState) -> bool:
    return state.status is TimingState.RUNNING


def is_stopped(state: EngineState) -> bool:
    return state.status is TimingState.STOPPED
