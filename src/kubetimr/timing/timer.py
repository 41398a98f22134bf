"""
Synchronous timer facade.

Wraps the pure engine with the pieces every front end needs: a clock, the
hold-to-start gate, a lock serializing input from several sources, and the
polling that enforces the inspection timeout.

Example:
    >>> timer = Timer(inspection_ms=15000, on_solve=lambda t, r: print(r))
    >>> timer.press(); timer.release()      # after a 300ms hold -> inspection
    >>> timer.press()                       # begin solve
    >>> timer.poll()                        # call once per frame
    >>> timer.press()                       # stop, on_solve fires
"""

import asyncio
import logging
import math
import os
import threading
from dataclasses import replace
from typing import Callable, Optional

from . import engine
from .engine import Clock, EngineState, MonotonicClock, TimingConfig, TimingState
from .gate import DEFAULT_HOLD_THRESHOLD_MS, HoldGate
from .result import Penalty, TimingResult

logger = logging.getLogger(__name__)

DEFAULT_INSPECTION_MS = 15000


class Timer:
    """
    Thread-safe timer driving one engine.

    Args:
        inspection_ms: Inspection length. Reads KUBETIMR_INSPECTION_MS if not
                       provided, defaults to 15000. 0 disables inspection.
        hold_threshold_ms: Hold needed to start. Reads KUBETIMR_HOLD_MS if not
                           provided, defaults to 300.
        config: Full engine config; overrides inspection_ms when given.
        clock: Time source, MonotonicClock by default.
        on_solve: Optional callback after each attempt stops.
                  Signature: (timer: Timer, result: TimingResult) -> None
    """

    def __init__(
        self,
        inspection_ms: float | None = None,
        hold_threshold_ms: float | None = None,
        config: Optional[TimingConfig] = None,
        clock: Optional[Clock] = None,
        on_solve: Optional[Callable[["Timer", TimingResult], None]] = None,
    ):
        if config is None:
            if inspection_ms is None:
                inspection_ms = float(
                    os.getenv("KUBETIMR_INSPECTION_MS", DEFAULT_INSPECTION_MS)
                )
            config = TimingConfig(inspection_duration_ms=inspection_ms)
        if hold_threshold_ms is None:
            hold_threshold_ms = float(
                os.getenv("KUBETIMR_HOLD_MS", DEFAULT_HOLD_THRESHOLD_MS)
            )

        self._clock = clock or MonotonicClock()
        self._gate = HoldGate(threshold_ms=hold_threshold_ms)
        self._state = engine.new_engine_state(config)
        self._on_solve = on_solve
        self._lock = threading.RLock()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> EngineState:
        with self._lock:
            return self._state

    @property
    def status(self) -> TimingState:
        return self.state.status

    @property
    def result(self) -> Optional[TimingResult]:
        return self.state.result

    @property
    def config(self) -> TimingConfig:
        return self.state.config

    @property
    def is_holding(self) -> bool:
        with self._lock:
            return self._gate.is_holding

    @property
    def is_ready(self) -> bool:
        """True once a start hold has reached the threshold."""
        with self._lock:
            return self._gate.is_ready(self._clock.now())

    def display_ms(self) -> float:
        """Time to show on screen right now."""
        with self._lock:
            return engine.elapsed_ms(self._state, self._clock.now())

    def inspection_remaining_s(self) -> Optional[int]:
        """Whole inspection seconds left (rounded up), None outside inspection."""
        with self._lock:
            remaining = engine.inspection_remaining_ms(self._state, self._clock.now())
        if remaining is None:
            return None
        return math.ceil(remaining / 1000)

    # =========================================================================
    # Input
    # =========================================================================

    def toggle(self) -> TimingState:
        """Dispatch one start/stop event directly, bypassing the hold gate."""
        with self._lock:
            self._transition(engine.handle_toggle(self._state, self._clock.now()))
            return self._state.status

    def press(self) -> TimingState:
        """Key/touch down."""
        with self._lock:
            now = self._clock.now()
            if self._gate.press(self._state.status, now):
                self._transition(engine.handle_toggle(self._state, now))
            return self._state.status

    def release(self) -> TimingState:
        """Key/touch up."""
        with self._lock:
            now = self._clock.now()
            if self._gate.release(self._state.status, now):
                self._transition(engine.handle_toggle(self._state, now))
            return self._state.status

    def set_penalty(self, penalty: Penalty) -> Optional[TimingResult]:
        """Apply a manual penalty to the stopped solve. Ignored in other states."""
        with self._lock:
            if self._state.status is TimingState.STOPPED:
                self._state = engine.apply_manual_penalty(self._state, penalty)
            return self._state.result

    def reset(self):
        """Drop any attempt in progress and return to idle."""
        with self._lock:
            self._state = engine.new_engine_state(self._state.config)
            self._gate.reset()

    def reconfigure(self, config: TimingConfig):
        """Swap the engine config. Takes effect from the next start."""
        with self._lock:
            self._state = replace(self._state, config=config)

    # =========================================================================
    # Polling
    # =========================================================================

    def poll(self) -> float:
        """
        Periodic tick. Call at a steady cadence (e.g. every frame) while
        inspecting or running.

        Enforces the inspection timeout: past limit + 2000 ms the attempt
        is stopped as a DNF.

        Returns:
            Current display time in ms
        """
        with self._lock:
            now = self._clock.now()
            expired = engine.expire_inspection(self._state, now)
            if expired is not self._state:
                logger.info(
                    "Inspection overran %.0fms, recording DNF",
                    expired.inspection_elapsed_ms,
                )
                self._transition(expired)
            return engine.elapsed_ms(self._state, now)

    async def watch(self, interval: float = 1 / 60) -> TimingState:
        """
        Poll until the attempt leaves inspection/running.

        Returns:
            The resting status (stopped, or idle after reset)
        """
        while True:
            self.poll()
            status = self.status
            if status not in (TimingState.INSPECTION, TimingState.RUNNING):
                return status
            await asyncio.sleep(interval)

    # =========================================================================
    # Internal
    # =========================================================================

    def _transition(self, new_state: EngineState):
        """Install new_state and notify on a freshly stopped attempt."""
        previous = self._state
        self._state = new_state
        if (
            new_state.status is TimingState.STOPPED
            and previous.status is not TimingState.STOPPED
            and new_state.result is not None
        ):
            logger.debug(
                "Attempt stopped: raw=%.0fms penalty=%s",
                new_state.result.raw_duration_ms,
                new_state.result.penalty.value,
            )
            if self._on_solve is not None:
                try:
                    self._on_solve(self, new_state.result)
                except Exception:
                    logger.exception("on_solve callback failed")
