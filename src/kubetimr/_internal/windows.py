"""Internal rolling-window order statistics."""

from collections import deque
from typing import Optional

from sortedcontainers import SortedList

# DNF sorts after every real time. Only used for ordering, never averaged.
_DNF = float("inf")


class SlidingTrimmedWindow:
    """
    Trimmed mean over a rolling window of solve times.

    Entries are (value, index) pairs kept both in arrival order (deque) and
    in value order (SortedList), so each push is O(log n) and the best and
    worst entries are always at the ends of the sorted list. Ties resolve
    like a stable sort: the earliest of equal minima and the latest of equal
    maxima are the ones trimmed.

    The mean is summed fresh from the kept entries in value order, so it is
    bit-identical to a from-scratch trimmed mean of the same window.
    """

    def __init__(self, window_size: int):
        if window_size < 3:
            raise ValueError("Trimmed window needs at least 3 entries")
        self.window_size = window_size
        self._window: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._sorted: SortedList = SortedList()
        self._dnf_count = 0

    def push(self, index: int, value: Optional[float]):
        """Append one solve (None = DNF), evicting the oldest when full."""
        if len(self._window) == self.window_size:
            evicted = self._window[0]
            self._sorted.remove(evicted)
            if evicted[0] == _DNF:
                self._dnf_count -= 1

        entry = (_DNF if value is None else value, index)
        self._window.append(entry)
        self._sorted.add(entry)
        if value is None:
            self._dnf_count += 1

    @property
    def count(self) -> int:
        return len(self._window)

    @property
    def full(self) -> bool:
        return len(self._window) == self.window_size

    def is_dnf(self) -> bool:
        """More than one DNF means one survives trimming."""
        return self.full and self._dnf_count > 1

    def value_ms(self) -> Optional[float]:
        """Trimmed mean of the current window, None if not full or DNF."""
        if not self.full or self._dnf_count > 1:
            return None
        kept = [value for value, _ in self._sorted[1:-1]]
        return sum(kept) / len(kept)

    def trimmed_indices(self) -> list[int]:
        """Indices surviving the trim, ascending."""
        return sorted(index for _, index in self._sorted[1:-1])

    def reset(self):
        self._window.clear()
        self._sorted.clear()
        self._dnf_count = 0

    def __str__(self) -> str:
        value = self.value_ms()
        if value is None:
            return f"n={self.count}/{self.window_size} value=None"
        return f"n={self.count}/{self.window_size} value={value:.2f}ms"
