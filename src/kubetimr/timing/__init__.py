"""
Timing module.

Pure inspection/solve state machine, the hold-to-start gate above it,
and a polling Timer facade for front ends.
"""

from .engine import (
    Clock,
    EngineState,
    ManualClock,
    MonotonicClock,
    TimingConfig,
    TimingState,
    apply_manual_penalty,
    begin_solve,
    elapsed_ms,
    expire_inspection,
    handle_toggle,
    inspection_remaining_ms,
    is_inspecting,
    is_ready_to_start,
    is_running,
    is_stopped,
    new_engine_state,
    penalty_for_inspection,
    start,
    stop,
)
from .gate import HoldGate
from .result import (
    PLUS2_MS,
    Penalty,
    TimingResult,
    apply_penalty,
    combine_penalties,
    format_duration,
)
from .timer import Timer

__all__ = [
    # Facade (recommended for most users)
    "Timer",
    "HoldGate",
    # Results
    "Penalty",
    "TimingResult",
    "PLUS2_MS",
    "apply_penalty",
    "combine_penalties",
    "format_duration",
    # Engine
    "TimingState",
    "TimingConfig",
    "EngineState",
    "new_engine_state",
    "start",
    "begin_solve",
    "stop",
    "apply_manual_penalty",
    "handle_toggle",
    "expire_inspection",
    "penalty_for_inspection",
    "elapsed_ms",
    "inspection_remaining_ms",
    "is_ready_to_start",
    "is_inspecting",
    "is_running",
    "is_stopped",
    # Clocks
    "Clock",
    "MonotonicClock",
    "ManualClock",
]
