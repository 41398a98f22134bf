"""
kubetimr

Speedcubing timer core: inspection and solve timing with competition
penalties, rolling statistics, split phases and a persisted solve history.

Timer example (recommended):
    >>> from kubetimr import Timer
    >>> timer = Timer(inspection_ms=15000)
    >>> timer.toggle()   # start inspection
    >>> timer.toggle()   # start the solve
    >>> timer.toggle()   # stop
    >>> print(format_duration(timer.result.final_duration_ms))

History example:
    >>> from kubetimr import SolveBook, create_adapter
    >>> adapter = create_adapter("history.ktmr")
    >>> book = SolveBook.from_data(adapter.load())
    >>> session = book.create_session("3x3", "333")
    >>> book.record_attempt(session.id, Scramble("333", "R U R' U'"), timer.result)
    >>> print(book.stats(session.id).rolling.ao5)
    >>> adapter.save(book.to_data())

Pure engine example:
    >>> state = new_engine_state(TimingConfig(inspection_duration_ms=15000))
    >>> state = handle_toggle(state, now=0)
    >>> state = handle_toggle(state, now=16000)   # +2 for slow inspection
"""

from .splits import (
    PhaseIssue,
    SplitBreakdown,
    SplitCapture,
    SplitInstance,
    SplitPhaseDefinition,
    SplitValidationResult,
    append_phase_timestamp,
    build_split_capture,
    compute_phase_durations,
    normalize_phase_definitions,
    sanitize_capture,
    split_breakdown,
    validate_split_instances,
)
from .stats import (
    Attempt,
    PersonalBest,
    PersonalBestCategory,
    RollingStats,
    SessionStats,
    StatsOptions,
    WindowKind,
    WindowResult,
    compute_session_stats,
)
from .store import (
    ArchiveFormatError,
    FileAdapter,
    KubetimrError,
    MemoryAdapter,
    PersistedData,
    PersistenceAdapter,
    SchemaVersionError,
    Scramble,
    Session,
    Settings,
    Solve,
    SolveBook,
    UnknownSessionError,
    create_adapter,
)
from .timing import (
    EngineState,
    HoldGate,
    ManualClock,
    MonotonicClock,
    Penalty,
    Timer,
    TimingConfig,
    TimingResult,
    TimingState,
    combine_penalties,
    format_duration,
    handle_toggle,
    new_engine_state,
)

__version__ = "0.1.0"

__all__ = [
    # Timer (recommended for most users)
    "Timer",
    "HoldGate",
    "MonotonicClock",
    "ManualClock",
    # Pure engine
    "TimingState",
    "TimingConfig",
    "EngineState",
    "new_engine_state",
    "handle_toggle",
    # Results and penalties
    "Penalty",
    "TimingResult",
    "combine_penalties",
    "format_duration",
    # Statistics
    "compute_session_stats",
    "StatsOptions",
    "SessionStats",
    "RollingStats",
    "PersonalBest",
    "PersonalBestCategory",
    "WindowKind",
    "WindowResult",
    "Attempt",
    # Splits
    "SplitPhaseDefinition",
    "SplitInstance",
    "SplitCapture",
    "PhaseIssue",
    "SplitValidationResult",
    "SplitBreakdown",
    "normalize_phase_definitions",
    "validate_split_instances",
    "sanitize_capture",
    "build_split_capture",
    "append_phase_timestamp",
    "compute_phase_durations",
    "split_breakdown",
    # History
    "SolveBook",
    "Scramble",
    "Session",
    "Solve",
    "Settings",
    "PersistedData",
    "PersistenceAdapter",
    "MemoryAdapter",
    "FileAdapter",
    "create_adapter",
    # Exceptions
    "KubetimrError",
    "SchemaVersionError",
    "ArchiveFormatError",
    "UnknownSessionError",
    # Version
    "__version__",
]
