"""
Per-solve split breakdown: phase durations, share of the total, untracked
time and deltas against the session's phase averages.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from .phases import SplitCapture, SplitPhaseDefinition, compute_phase_durations

# Gaps between tracked and total time below this are rounding noise.
UNTRACKED_THRESHOLD_MS = 100


@dataclass(frozen=True)
class PhaseBreakdown:
    name: str
    duration_ms: Optional[float]
    share_pct: Optional[float]
    delta_ms: Optional[float]  # vs. the phase average, negative = faster

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "duration_ms": self.duration_ms,
            "share_pct": self.share_pct,
            "delta_ms": self.delta_ms,
        }


@dataclass(frozen=True)
class SplitBreakdown:
    """
    Breakdown of one solve.

    Attributes:
        phases: One entry per defined phase, in definition order
        captured_count: Defined phases with a duration
        defined_count: Number of defined phases
        tracked_ms: Sum of known phase durations
        untracked_ms: Total minus tracked (0 without a total)
        total_duration_ms: The total the shares are relative to
    """

    phases: tuple[PhaseBreakdown, ...]
    captured_count: int
    defined_count: int
    tracked_ms: float
    untracked_ms: float
    total_duration_ms: Optional[float]

    @property
    def has_untracked(self) -> bool:
        return self.untracked_ms > UNTRACKED_THRESHOLD_MS

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "phases": [p.to_dict() for p in self.phases],
            "captured_count": self.captured_count,
            "defined_count": self.defined_count,
            "tracked_ms": self.tracked_ms,
            "untracked_ms": self.untracked_ms,
            "has_untracked": self.has_untracked,
            "total_duration_ms": self.total_duration_ms,
        }


def split_breakdown(
    definitions: Sequence[SplitPhaseDefinition],
    capture: SplitCapture,
    total_duration_ms: Optional[float],
    averages: Optional[Mapping[str, float]] = None,
) -> SplitBreakdown:
    """
    Break one capture down against its solve's total time.

    Args:
        definitions: Phase definitions
        capture: The solve's capture
        total_duration_ms: Raw solve duration, or None if unknown
        averages: Phase name -> average duration, see phase_averages()
    """
    durations = compute_phase_durations(definitions, capture, total_duration_ms)
    averages = averages or {}

    phases = []
    for name, duration in durations.items():
        share = None
        if duration is not None and total_duration_ms:
            share = duration / total_duration_ms * 100
        delta = None
        if duration is not None and name in averages:
            delta = duration - averages[name]
        phases.append(
            PhaseBreakdown(name=name, duration_ms=duration, share_pct=share, delta_ms=delta)
        )

    tracked = sum(d for d in durations.values() if d is not None)
    untracked = 0
    if total_duration_ms is not None:
        untracked = max(total_duration_ms - tracked, 0)

    return SplitBreakdown(
        phases=tuple(phases),
        captured_count=sum(1 for d in durations.values() if d is not None),
        defined_count=len(durations),
        tracked_ms=tracked,
        untracked_ms=untracked,
        total_duration_ms=total_duration_ms,
    )


def phase_averages(
    definitions: Sequence[SplitPhaseDefinition],
    captures: Iterable[SplitCapture],
    totals: Mapping[str, Optional[float]],
) -> dict[str, float]:
    """
    Average duration per phase across captures.

    Args:
        definitions: Phase definitions
        captures: Captures to average over
        totals: solve_id -> raw duration, used to close the last phase

    Returns:
        Phase name -> mean duration. Phases never timed are left out.
    """
    sums: dict[str, float] = {}
    counts: dict[str, int] = {}
    for capture in captures:
        durations = compute_phase_durations(
            definitions, capture, totals.get(capture.solve_id)
        )
        for name, duration in durations.items():
            if duration is None:
                continue
            sums[name] = sums.get(name, 0) + duration
            counts[name] = counts.get(name, 0) + 1
    return {name: sums[name] / counts[name] for name in sums}
