"""
Session statistics.

compute_session_stats() is a pure function of the solve history: callers
re-run it after every append, edit or delete. Nothing is cached between
calls and the input is never mutated.

Recomputing is O(history * window) per personal-best category. The
trimmed categories slide a sorted window to pick the trimmed entries.
That is comfortably fast for a practice session of a few thousand solves;
histories in the millions would want incremental maintenance instead.

Example:
    >>> stats = compute_session_stats(solves, StatsOptions(mox_ao5=12))
    >>> stats.rolling.ao5.value_ms
    >>> stats.personal_best(PersonalBestCategory.SINGLE).solve_ids
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Protocol, Sequence

from ..timing.result import Penalty
from .windows import (
    WindowKind,
    WindowResult,
    best_mean_of_ao5,
    best_trimmed_window,
    best_window,
    latest_mean_of_ao5,
    latest_window,
)


class AttemptLike(Protocol):
    """What the statistics engine needs from a solve."""

    @property
    def id(self) -> str: ...

    @property
    def created_at(self) -> Any: ...  # chronological ordering key

    @property
    def final_duration_ms(self) -> Optional[float]: ...


@dataclass(frozen=True)
class Attempt:
    """Minimal AttemptLike, for imports and tests."""

    id: str
    created_at: str
    final_duration_ms: Optional[float]
    penalty: Penalty = Penalty.NONE


class PersonalBestCategory(str, Enum):
    SINGLE = "single"
    MO3 = "mo3"
    AO5 = "ao5"
    AO12 = "ao12"
    CUSTOM = "custom"  # mean of X Ao5s


@dataclass(frozen=True)
class PersonalBest:
    """
    Best value ever reached in one category.

    Attributes:
        category: Which aggregate
        size: Window size (1 for single, X for the custom MoXAo5)
        value_ms: The record
        solve_ids: Contributing solves, chronological
        achieved_at: created_at of the last contributing solve
    """

    category: PersonalBestCategory
    size: int
    value_ms: float
    solve_ids: tuple[str, ...]
    achieved_at: Any

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "category": self.category.value,
            "size": self.size,
            "value_ms": self.value_ms,
            "solve_ids": list(self.solve_ids),
            "achieved_at": self.achieved_at,
        }


@dataclass(frozen=True)
class MoXAo5:
    x: int
    result: Optional[WindowResult]


@dataclass(frozen=True)
class RollingStats:
    """Trailing aggregates for live display. None = not enough solves yet."""

    count: int
    best_ms: Optional[float]
    worst_ms: Optional[float]
    mean_ms: Optional[float]
    mo3: Optional[WindowResult]
    ao5: Optional[WindowResult]
    ao12: Optional[WindowResult]
    ao50: Optional[WindowResult]
    ao100: Optional[WindowResult]
    ao1000: Optional[WindowResult]
    mox_ao5: Optional[MoXAo5] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""

        def window(result: Optional[WindowResult]) -> Optional[dict]:
            return result.to_dict() if result is not None else None

        return {
            "count": self.count,
            "best_ms": self.best_ms,
            "worst_ms": self.worst_ms,
            "mean_ms": self.mean_ms,
            "mo3": window(self.mo3),
            "ao5": window(self.ao5),
            "ao12": window(self.ao12),
            "ao50": window(self.ao50),
            "ao100": window(self.ao100),
            "ao1000": window(self.ao1000),
            "mox_ao5": (
                {"x": self.mox_ao5.x, "result": window(self.mox_ao5.result)}
                if self.mox_ao5 is not None
                else None
            ),
        }


@dataclass(frozen=True)
class TimelinePoint:
    """One solve on the session graph."""

    solve_id: str
    index: int
    final_duration_ms: Optional[float]
    penalty: Penalty
    created_at: Any


@dataclass(frozen=True)
class StatsOptions:
    """mox_ao5: X for the mean of the last X Ao5s; 0 disables it."""

    mox_ao5: int = 0


@dataclass(frozen=True)
class SessionStats:
    rolling: RollingStats
    timeline: list[TimelinePoint] = field(default_factory=list)
    personal_bests: list[PersonalBest] = field(default_factory=list)

    def personal_best(
        self, category: PersonalBestCategory, size: Optional[int] = None
    ) -> Optional[PersonalBest]:
        for pb in self.personal_bests:
            if pb.category == category and (size is None or pb.size == size):
                return pb
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "rolling": self.rolling.to_dict(),
            "timeline": [
                {
                    "solve_id": p.solve_id,
                    "index": p.index,
                    "final_duration_ms": p.final_duration_ms,
                    "penalty": p.penalty.value,
                    "created_at": p.created_at,
                }
                for p in self.timeline
            ],
            "personal_bests": [pb.to_dict() for pb in self.personal_bests],
        }


# Categories scanned over the full history: (category, kind, size)
_WINDOW_CATEGORIES = (
    (PersonalBestCategory.MO3, WindowKind.MEAN, 3),
    (PersonalBestCategory.AO5, WindowKind.TRIMMED, 5),
    (PersonalBestCategory.AO12, WindowKind.TRIMMED, 12),
)

_TRAILING_AVERAGES = (5, 12, 50, 100, 1000)


def compute_session_stats(
    attempts: Iterable[AttemptLike], options: Optional[StatsOptions] = None
) -> SessionStats:
    """
    Compute trailing aggregates, timeline and personal bests.

    Args:
        attempts: Solves in any order; sorted by created_at (stable)
        options: StatsOptions, e.g. the X of the custom MoXAo5

    Returns:
        SessionStats
    """
    options = options or StatsOptions()
    ordered = sorted(attempts, key=lambda a: a.created_at)
    durations = [a.final_duration_ms for a in ordered]
    valid = [d for d in durations if d is not None]

    trailing = {
        size: latest_window(durations, WindowKind.TRIMMED, size)
        for size in _TRAILING_AVERAGES
    }
    mox_ao5 = None
    if options.mox_ao5 > 0:
        mox_ao5 = MoXAo5(
            x=options.mox_ao5,
            result=latest_mean_of_ao5(durations, options.mox_ao5),
        )

    rolling = RollingStats(
        count=len(durations),
        best_ms=min(valid) if valid else None,
        worst_ms=max(valid) if valid else None,
        mean_ms=sum(valid) / len(valid) if valid else None,
        mo3=latest_window(durations, WindowKind.MEAN, 3),
        ao5=trailing[5],
        ao12=trailing[12],
        ao50=trailing[50],
        ao100=trailing[100],
        ao1000=trailing[1000],
        mox_ao5=mox_ao5,
    )

    timeline = [
        TimelinePoint(
            solve_id=attempt.id,
            index=index,
            final_duration_ms=attempt.final_duration_ms,
            penalty=_penalty_of(attempt),
            created_at=attempt.created_at,
        )
        for index, attempt in enumerate(ordered)
    ]

    return SessionStats(
        rolling=rolling,
        timeline=timeline,
        personal_bests=_scan_personal_bests(ordered, durations, options),
    )


# =============================================================================
# Personal bests
# =============================================================================


# Record key: the custom MoXAo5 keeps one record per X.
RecordKey = tuple[PersonalBestCategory, int]

_CATEGORY_ORDER = {category: rank for rank, category in enumerate(PersonalBestCategory)}


def record_if_better(bests: dict[RecordKey, PersonalBest], candidate: PersonalBest) -> bool:
    """
    Store candidate if it beats the record for its (category, size).

    Only a strictly lower value replaces the record; on a tie the record
    achieved first is kept. Returns True if the record changed.
    """
    key = (candidate.category, candidate.size)
    existing = bests.get(key)
    if existing is None or candidate.value_ms < existing.value_ms:
        bests[key] = candidate
        return True
    if candidate.value_ms == existing.value_ms and candidate.achieved_at < existing.achieved_at:
        bests[key] = candidate
        return True
    return False


def _ordered_records(bests: dict[RecordKey, PersonalBest]) -> list[PersonalBest]:
    return [bests[key] for key in sorted(bests, key=lambda k: (_CATEGORY_ORDER[k[0]], k[1]))]


def merge_personal_bests(*groups: Sequence[PersonalBest]) -> list[PersonalBest]:
    """
    Combine records from several sessions.

    One record per category and size, so custom means of different X are
    kept side by side whatever order the groups come in.
    """
    bests: dict[RecordKey, PersonalBest] = {}
    for group in groups:
        for pb in group:
            record_if_better(bests, pb)
    return _ordered_records(bests)


def _scan_personal_bests(
    ordered: Sequence[AttemptLike],
    durations: Sequence[Optional[float]],
    options: StatsOptions,
) -> list[PersonalBest]:
    bests: dict[RecordKey, PersonalBest] = {}

    single_index = _best_single_index(durations)
    if single_index is not None:
        attempt = ordered[single_index]
        record_if_better(
            bests,
            PersonalBest(
                category=PersonalBestCategory.SINGLE,
                size=1,
                value_ms=durations[single_index],
                solve_ids=(attempt.id,),
                achieved_at=attempt.created_at,
            ),
        )

    for category, kind, size in _WINDOW_CATEGORIES:
        if kind is WindowKind.TRIMMED:
            best = best_trimmed_window(durations, size)
        else:
            best = best_window(durations, kind, size)
        if best is not None:
            record_if_better(bests, _from_window(category, size, best, ordered))

    if options.mox_ao5 > 0:
        best = best_mean_of_ao5(durations, options.mox_ao5)
        if best is not None:
            record_if_better(
                bests,
                _from_window(PersonalBestCategory.CUSTOM, options.mox_ao5, best, ordered),
            )

    return _ordered_records(bests)


def _best_single_index(durations: Sequence[Optional[float]]) -> Optional[int]:
    """Index of the first occurrence of the lowest non-DNF time."""
    best_index = None
    for index, value in enumerate(durations):
        if value is None:
            continue
        if best_index is None or value < durations[best_index]:
            best_index = index
    return best_index


def _from_window(
    category: PersonalBestCategory,
    size: int,
    window: WindowResult,
    ordered: Sequence[AttemptLike],
) -> PersonalBest:
    return PersonalBest(
        category=category,
        size=size,
        value_ms=window.value_ms,
        solve_ids=tuple(ordered[i].id for i in window.indices),
        achieved_at=ordered[max(window.indices)].created_at,
    )


def _penalty_of(attempt: AttemptLike) -> Penalty:
    penalty = getattr(attempt, "penalty", None)
    if penalty is not None:
        return Penalty(penalty)
    return Penalty.DNF if attempt.final_duration_ms is None else Penalty.NONE
