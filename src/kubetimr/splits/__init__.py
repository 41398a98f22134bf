"""
Split phases module.

Define named phases, capture a timestamp per phase during a solve, and
reduce captures to per-phase durations and breakdowns.
"""

from .breakdown import (
    UNTRACKED_THRESHOLD_MS,
    PhaseBreakdown,
    SplitBreakdown,
    phase_averages,
    split_breakdown,
)
from .phases import (
    PhaseIssue,
    SplitCapture,
    SplitInstance,
    SplitPhaseDefinition,
    SplitValidationResult,
    append_phase_timestamp,
    build_split_capture,
    compute_phase_durations,
    normalize_phase_definitions,
    sanitize_capture,
    upsert_capture,
    validate_split_instances,
)

__all__ = [
    # Definitions and captures
    "SplitPhaseDefinition",
    "SplitInstance",
    "SplitCapture",
    "normalize_phase_definitions",
    "build_split_capture",
    "append_phase_timestamp",
    "upsert_capture",
    # Validation
    "PhaseIssue",
    "SplitValidationResult",
    "validate_split_instances",
    "sanitize_capture",
    # Durations
    "compute_phase_durations",
    "PhaseBreakdown",
    "SplitBreakdown",
    "split_breakdown",
    "phase_averages",
    "UNTRACKED_THRESHOLD_MS",
]
