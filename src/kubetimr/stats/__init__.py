"""
Rolling statistics module.

Trailing Mo3/AoN/MoXAo5 aggregates for display and full-history personal
bests, recomputed from the solve history on every change.
"""

from .session import (
    Attempt,
    AttemptLike,
    MoXAo5,
    PersonalBest,
    PersonalBestCategory,
    RollingStats,
    SessionStats,
    StatsOptions,
    TimelinePoint,
    compute_session_stats,
    merge_personal_bests,
    record_if_better,
)
from .windows import (
    WindowKind,
    WindowResult,
    ao5_series,
    best_mean_of_ao5,
    best_trimmed_window,
    best_window,
    evaluate_window,
    latest_mean_of_ao5,
    latest_window,
    mean_of_windows,
    mean_window,
    trimmed_window,
)

__all__ = [
    # Session statistics
    "compute_session_stats",
    "StatsOptions",
    "SessionStats",
    "RollingStats",
    "MoXAo5",
    "TimelinePoint",
    "Attempt",
    "AttemptLike",
    # Personal bests
    "PersonalBest",
    "PersonalBestCategory",
    "record_if_better",
    "merge_personal_bests",
    # Windows
    "WindowKind",
    "WindowResult",
    "mean_window",
    "trimmed_window",
    "evaluate_window",
    "latest_window",
    "best_window",
    "best_trimmed_window",
    "ao5_series",
    "mean_of_windows",
    "latest_mean_of_ao5",
    "best_mean_of_ao5",
]
