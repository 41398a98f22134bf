"""
Window aggregates over a chronological list of solve times.

Each solve contributes its final duration in ms, or None for a DNF.
Two window kinds exist:

- MEAN (Mo3): plain mean, invalid if any solve in the window is a DNF.
- TRIMMED (AoN): drop one best and one worst, average the rest. DNF ranks
  as the worst possible time, so a single DNF is trimmed away; a second
  one survives the trim and invalidates the average.

Two different questions are asked of these windows:

- latest_*: the trailing window only, for live display.
- best_*: every window in the history, for personal bests.

A None return always means "not enough solves yet". A WindowResult with
is_dnf=True means the window exists but was invalidated by penalties.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .._internal.windows import SlidingTrimmedWindow

Durations = Sequence[Optional[float]]

# Sorts after any real time. Used to pick the trimmed entries, never averaged.
_DNF = float("inf")


class WindowKind(str, Enum):
    MEAN = "mean"
    TRIMMED = "trimmed"


@dataclass(frozen=True)
class WindowResult:
    """
    One computed window aggregate.

    Attributes:
        size: Window length (for a mean of Ao5s: how many Ao5s)
        value_ms: Aggregate in ms, None if invalidated by DNF
        indices: Chronological positions that contributed, ascending
        is_dnf: True if penalties invalidated the window
    """

    size: int
    value_ms: Optional[float]
    indices: tuple[int, ...]
    is_dnf: bool

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "size": self.size,
            "value_ms": self.value_ms,
            "indices": list(self.indices),
            "is_dnf": self.is_dnf,
        }


def _average(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _check_bounds(values: Durations, start: int, size: int):
    if start < 0 or start + size > len(values):
        raise ValueError(
            f"Window [{start}, {start + size}) out of range for {len(values)} solves"
        )


# =============================================================================
# Single-window evaluators
# =============================================================================


def mean_window(values: Durations, start: int, size: int = 3) -> WindowResult:
    """Untrimmed mean of values[start:start+size]."""
    if size < 1:
        raise ValueError("Mean window needs at least 1 entry")
    _check_bounds(values, start, size)

    window = values[start : start + size]
    indices = tuple(range(start, start + size))
    if any(v is None for v in window):
        return WindowResult(size=size, value_ms=None, indices=indices, is_dnf=True)
    return WindowResult(size=size, value_ms=_average(window), indices=indices, is_dnf=False)


def trimmed_window(values: Durations, start: int, size: int) -> WindowResult:
    """Trimmed mean of values[start:start+size] (one best, one worst removed)."""
    if size < 3:
        raise ValueError("Trimmed window needs at least 3 entries")
    _check_bounds(values, start, size)

    entries = [
        (_DNF if v is None else v, start + offset)
        for offset, v in enumerate(values[start : start + size])
    ]
    # Stable: among equal times the earliest is "best", the latest "worst"
    ranked = sorted(entries, key=lambda e: e[0])
    kept = ranked[1:-1]
    indices = tuple(sorted(index for _, index in kept))

    if any(v == _DNF for v, _ in kept):
        return WindowResult(size=size, value_ms=None, indices=indices, is_dnf=True)
    return WindowResult(
        size=size,
        value_ms=_average([v for v, _ in kept]),
        indices=indices,
        is_dnf=False,
    )


def evaluate_window(
    values: Durations, start: int, kind: WindowKind, size: int
) -> WindowResult:
    if kind == WindowKind.MEAN:
        return mean_window(values, start, size)
    return trimmed_window(values, start, size)


# =============================================================================
# Trailing and best-ever scans
# =============================================================================


def latest_window(values: Durations, kind: WindowKind, size: int) -> Optional[WindowResult]:
    """The most recent window, or None with fewer than size solves."""
    if len(values) < size:
        return None
    return evaluate_window(values, len(values) - size, kind, size)


def best_window(values: Durations, kind: WindowKind, size: int) -> Optional[WindowResult]:
    """
    Lowest valid window anywhere in the history.

    Brute-force scan of every start offset, O(n * size). A later window
    replaces the current best only when strictly lower, so ties keep the
    earliest. Returns None when no valid window exists.
    """
    best: Optional[WindowResult] = None
    for start in range(len(values) - size + 1):
        candidate = evaluate_window(values, start, kind, size)
        if candidate.value_ms is None:
            continue
        if best is None or candidate.value_ms < best.value_ms:
            best = candidate
    return best


def best_trimmed_window(values: Durations, size: int) -> Optional[WindowResult]:
    """
    Same result as best_window(values, WindowKind.TRIMMED, size), with the
    trimmed entries picked by a sliding order-statistics window.

    Each window's mean is summed fresh in value order, as trimmed_window()
    does, so float times give the same values as the trailing Ao5/Ao12 and
    identical later windows never beat the earlier record.
    """
    if len(values) < size:
        return None

    window = SlidingTrimmedWindow(size)
    best: Optional[WindowResult] = None
    for index, value in enumerate(values):
        window.push(index, value)
        if not window.full:
            continue
        current = window.value_ms()
        if current is None:
            continue
        if best is None or current < best.value_ms:
            best = WindowResult(
                size=size,
                value_ms=current,
                indices=tuple(window.trimmed_indices()),
                is_dnf=False,
            )
    return best


# =============================================================================
# Mean of Ao5s (MoXAo5)
# =============================================================================


def ao5_series(values: Durations) -> list[WindowResult]:
    """Ao5 at every start offset, oldest first."""
    return [trimmed_window(values, start, 5) for start in range(len(values) - 4)]


def mean_of_windows(series: Sequence[WindowResult], start: int, count: int) -> WindowResult:
    """
    Mean of count consecutive window results.

    Invalid if any of them is invalid. Contributing indices are the union
    of the underlying windows' indices.
    """
    if count < 1 or start < 0 or start + count > len(series):
        raise ValueError(
            f"Series slice [{start}, {start + count}) out of range for {len(series)} windows"
        )
    chunk = series[start : start + count]
    indices = tuple(sorted({i for result in chunk for i in result.indices}))
    if any(result.value_ms is None for result in chunk):
        return WindowResult(size=count, value_ms=None, indices=indices, is_dnf=True)
    return WindowResult(
        size=count,
        value_ms=_average([result.value_ms for result in chunk]),
        indices=indices,
        is_dnf=False,
    )


def latest_mean_of_ao5(values: Durations, x: int) -> Optional[WindowResult]:
    """Mean of the last x Ao5s. Needs at least x + 4 solves."""
    if x <= 0:
        return None
    first = len(values) - x - 4
    if first < 0:
        return None
    series = [trimmed_window(values, start, 5) for start in range(first, first + x)]
    return mean_of_windows(series, 0, x)


def best_mean_of_ao5(values: Durations, x: int) -> Optional[WindowResult]:
    """Lowest valid mean of x consecutive Ao5s in the whole history."""
    if x <= 0 or len(values) < x + 4:
        return None
    series = ao5_series(values)
    best: Optional[WindowResult] = None
    for start in range(len(series) - x + 1):
        if any(result.value_ms is None for result in series[start : start + x]):
            continue
        candidate = mean_of_windows(series, start, x)
        if best is None or candidate.value_ms < best.value_ms:
            best = candidate
    return best
