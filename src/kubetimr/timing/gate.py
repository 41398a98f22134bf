"""
Hold-to-start input gate.

Sits above the engine and turns raw press/release events into toggle
decisions. Starting requires holding the key for threshold_ms (the "green
light" convention of competition timers); stopping and ending inspection
fire on press so no reaction time is lost.

The gate owns no timers. Every decision is made from the timestamps the
caller passes in, keeping the engine below it pure.

Example:
    >>> gate = HoldGate(threshold_ms=300)
    >>> gate.press(TimingState.IDLE, now=0)
    False
    >>> gate.release(TimingState.IDLE, now=450)
    True
"""

from typing import Optional

from .engine import TimingState


DEFAULT_HOLD_THRESHOLD_MS = 300

_READY_STATES = (TimingState.IDLE, TimingState.STOPPED)


class HoldGate:
    """Debounce layer deciding when a press/release becomes a toggle."""

    def __init__(self, threshold_ms: float = DEFAULT_HOLD_THRESHOLD_MS):
        if threshold_ms < 0:
            raise ValueError("threshold_ms cannot be negative")
        self.threshold_ms = threshold_ms
        self._pressed = False
        self._hold_start_ts: Optional[float] = None

    @property
    def is_pressed(self) -> bool:
        return self._pressed

    @property
    def is_holding(self) -> bool:
        """True while an armed start hold is in progress."""
        return self._hold_start_ts is not None

    def held_ms(self, now: float) -> float:
        if self._hold_start_ts is None:
            return 0
        return now - self._hold_start_ts

    def is_ready(self, now: float) -> bool:
        """Hold has lasted long enough that releasing will start the timer."""
        return self.is_holding and self.held_ms(now) >= self.threshold_ms

    def press(self, status: TimingState, now: float) -> bool:
        """
        Register a key/touch press. Returns True if a toggle should fire now.

        Auto-repeat presses (no release in between) are ignored.
        """
        if self._pressed:
            return False
        self._pressed = True

        if status in _READY_STATES:
            self._hold_start_ts = now
            return False

        # inspection -> begin solve, running -> stop
        self._hold_start_ts = None
        return True

    def release(self, status: TimingState, now: float) -> bool:
        """Register a release. Returns True if a toggle should fire now."""
        was_pressed = self._pressed
        self._pressed = False
        fire = (
            was_pressed
            and status in _READY_STATES
            and self._hold_start_ts is not None
            and self.held_ms(now) >= self.threshold_ms
        )
        self._hold_start_ts = None
        return fire

    def reset(self):
        self._pressed = False
        self._hold_start_ts = None
