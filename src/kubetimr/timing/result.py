"""
Penalties and timing results.

A solve produces exactly one TimingResult. Its penalty is the combination
of the automatic inspection penalty and any manual penalty, where the more
severe one always wins:

    DNF > +2 > none

All durations are milliseconds. Use format_duration() for display.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


# Time added by a +2 penalty, in milliseconds.
PLUS2_MS = 2000


class Penalty(str, Enum):
    """Competition penalty attached to a solve."""

    NONE = "none"
    PLUS2 = "+2"
    DNF = "dnf"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {Penalty.NONE: 0, Penalty.PLUS2: 1, Penalty.DNF: 2}


def combine_penalties(*penalties: Penalty) -> Penalty:
    """
    Combine penalties from several sources.

    The most severe penalty wins. Penalties never accumulate:
    two +2 penalties are still a single +2.

    Example:
        >>> combine_penalties(Penalty.PLUS2, Penalty.PLUS2)
        <Penalty.PLUS2: '+2'>
    """
    combined = Penalty.NONE
    for penalty in penalties:
        if penalty.severity > combined.severity:
            combined = penalty
    return combined


def apply_penalty(raw_duration_ms: float, penalty: Penalty) -> Optional[float]:
    """Final duration for a raw duration under a penalty (None for DNF)."""
    if penalty == Penalty.DNF:
        return None
    if penalty == Penalty.PLUS2:
        return raw_duration_ms + PLUS2_MS
    return raw_duration_ms


@dataclass(frozen=True)
class TimingResult:
    """
    Authoritative result of one timed attempt.

    Timestamps are clock readings in ms and never change once the attempt
    stops. Only penalty/final_duration_ms may be revised afterwards.
    """

    start_ts: float
    end_ts: float
    inspection_duration_ms: float
    raw_duration_ms: float  # end_ts - start_ts
    penalty: Penalty
    final_duration_ms: Optional[float]  # None when DNF

    @classmethod
    def from_timestamps(
        cls,
        start_ts: float,
        end_ts: float,
        penalty: Penalty = Penalty.NONE,
        inspection_duration_ms: float = 0,
    ) -> "TimingResult":
        raw = end_ts - start_ts
        return cls(
            start_ts=start_ts,
            end_ts=end_ts,
            inspection_duration_ms=inspection_duration_ms,
            raw_duration_ms=raw,
            penalty=penalty,
            final_duration_ms=apply_penalty(raw, penalty),
        )

    @property
    def is_dnf(self) -> bool:
        return self.penalty == Penalty.DNF

    def with_penalty(self, penalty: Penalty) -> "TimingResult":
        """Copy with the penalty replaced outright and final duration recomputed."""
        if penalty == self.penalty:
            return self
        return replace(
            self,
            penalty=penalty,
            final_duration_ms=apply_penalty(self.raw_duration_ms, penalty),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "start_ts": self.start_ts,
            "end_ts": self.end_ts,
            "inspection_duration_ms": self.inspection_duration_ms,
            "raw_duration_ms": self.raw_duration_ms,
            "penalty": self.penalty.value,
            "final_duration_ms": self.final_duration_ms,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimingResult":
        """
        Rebuild from to_dict() output.

        final_duration_ms is derived from raw duration and penalty rather
        than trusted, so a stored document can never break the
        penalty/duration invariant.
        """
        penalty = Penalty(data.get("penalty", Penalty.NONE.value))
        raw = data["raw_duration_ms"]
        return cls(
            start_ts=data["start_ts"],
            end_ts=data["end_ts"],
            inspection_duration_ms=data.get("inspection_duration_ms", 0),
            raw_duration_ms=raw,
            penalty=penalty,
            final_duration_ms=apply_penalty(raw, penalty),
        )


def format_duration(ms: Optional[float], dnf_text: str = "DNF") -> str:
    """
    Format a duration for display, truncated to centiseconds.

    Args:
        ms: Duration in milliseconds, or None for DNF

    Returns:
        "12.34", "1:02.50", or dnf_text

    Example:
        >>> format_duration(62500)
        '1:02.50'
    """
    if ms is None:
        return dnf_text
    if ms < 0:
        ms = 0

    whole_ms = int(ms)
    total_seconds = whole_ms // 1000
    minutes = total_seconds // 60
    seconds = total_seconds % 60
    centis = (whole_ms % 1000) // 10

    if minutes > 0:
        return f"{minutes}:{seconds:02d}.{centis:02d}"
    return f"{seconds}.{centis:02d}"
