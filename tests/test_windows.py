"""Tests for window aggregates."""

import random

import pytest

from kubetimr._internal.windows import SlidingTrimmedWindow
from kubetimr.stats import (
    WindowKind,
    ao5_series,
    best_mean_of_ao5,
    best_trimmed_window,
    best_window,
    latest_mean_of_ao5,
    latest_window,
    mean_window,
    trimmed_window,
)


def test_ao5_basic():
    """Test the textbook Ao5."""
    values = [10000, 20000, 30000, 40000, 50000]
    result = trimmed_window(values, 0, 5)
    assert result.value_ms == 30000
    assert result.indices == (1, 2, 3)
    assert not result.is_dnf


def test_ao5_single_dnf_is_trimmed():
    """Test that one DNF counts as the worst and is dropped."""
    result = trimmed_window([10000, None, 30000, 40000, 50000], 0, 5)
    assert result.value_ms == 40000
    assert result.indices == (2, 3, 4)


def test_ao5_two_dnfs_invalid():
    """Test that a second DNF survives the trim."""
    result = trimmed_window([10000, None, 30000, None, 50000], 0, 5)
    assert result.is_dnf
    assert result.value_ms is None


def test_trimmed_ties_trim_first_min_and_last_max():
    """Test tie handling among equal times."""
    result = trimmed_window([5000, 5000, 5000, 5000, 5000], 0, 5)
    assert result.indices == (1, 2, 3)
    assert result.value_ms == 5000


def test_mo3():
    """Test the untrimmed mean of 3."""
    assert mean_window([9000, 10000, 11000], 0).value_ms == 10000
    dnf = mean_window([9000, None, 11000], 0)
    assert dnf.is_dnf
    assert dnf.indices == (0, 1, 2)


def test_window_bounds_checked():
    """Test that out-of-range windows raise."""
    with pytest.raises(ValueError):
        trimmed_window([1, 2, 3], 1, 3)
    with pytest.raises(ValueError):
        trimmed_window([1, 2], 0, 2)
    with pytest.raises(ValueError):
        mean_window([1, 2, 3], -1, 3)


def test_latest_window_insufficient_history():
    """Test that short histories give None, not DNF."""
    assert latest_window([10000] * 4, WindowKind.TRIMMED, 5) is None
    latest = latest_window([10000] * 3 + [20000, 30000, 40000], WindowKind.TRIMMED, 5)
    assert latest.indices == (2, 3, 4)
    assert latest.value_ms == 20000


def test_best_window_keeps_earliest_tie():
    """Test that a later equal window does not replace the best."""
    values = [10000, 10000, 10000, 20000, 10000, 10000, 10000]
    best = best_window(values, WindowKind.MEAN, 3)
    assert best.indices == (0, 1, 2)


def test_best_window_skips_invalid():
    """Test that DNF windows never become the best."""
    values = [None, 9000, 9000, 9000, None]
    best = best_window(values, WindowKind.MEAN, 3)
    assert best.indices == (1, 2, 3)
    assert best_window([None, None, None, None], WindowKind.MEAN, 3) is None


@pytest.mark.parametrize("seed", [1, 7, 42, 2024])
@pytest.mark.parametrize("size", [5, 12])
def test_sliding_best_matches_brute_force(seed, size):
    """Test the sliding scan against the brute-force reference."""
    rng = random.Random(seed)
    values = [
        None if rng.random() < 0.1 else rng.randint(6000, 14000)
        for _ in range(200)
    ]
    fast = best_trimmed_window(values, size)
    slow = best_window(values, WindowKind.TRIMMED, size)
    assert fast == slow


def test_sliding_window_state():
    """Test SlidingTrimmedWindow eviction and DNF counting."""
    window = SlidingTrimmedWindow(5)
    for index, value in enumerate([10000, None, 30000, 40000, 50000]):
        window.push(index, value)
    assert window.full
    assert window.value_ms() == 40000
    window.push(5, None)  # evicts 10000, now two DNFs
    assert window.is_dnf()
    assert window.value_ms() is None
    window.reset()
    assert window.count == 0
    with pytest.raises(ValueError):
        SlidingTrimmedWindow(2)


def test_mean_of_ao5():
    """Test MoXAo5 value and contributing indices."""
    values = [10000, 20000, 30000, 40000, 50000, 60000]
    assert len(ao5_series(values)) == 2
    result = latest_mean_of_ao5(values, 2)
    assert result.value_ms == 35000
    assert result.indices == (1, 2, 3, 4)
    assert latest_mean_of_ao5(values[:5], 2) is None
    assert latest_mean_of_ao5(values, 0) is None


def test_mean_of_ao5_invalid_when_any_ao5_invalid():
    """Test that an invalid Ao5 invalidates the mean."""
    values = [10000, None, None, 40000, 50000, 60000]
    assert latest_mean_of_ao5(values, 2).is_dnf


def test_best_mean_of_ao5():
    """Test the best MoXAo5 over the history."""
    values = [30000] * 5 + [10000] * 6
    best = best_mean_of_ao5(values, 2)
    assert best.value_ms == 10000
    # First qualifying pair: Ao5s starting at 4 and 5
    assert best.indices == (6, 7, 8)
    assert best_mean_of_ao5(values[:5], 2) is None


@pytest.mark.parametrize("seed", [3, 11, 99, 2026])
@pytest.mark.parametrize("size", [5, 12])
def test_sliding_best_matches_brute_force_on_float_times(seed, size):
    """Test sliding scan equality on sub-millisecond clock readings."""
    rng = random.Random(seed)
    values = [
        None if rng.random() < 0.1 else rng.uniform(6000, 14000)
        for _ in range(300)
    ]
    assert best_trimmed_window(values, size) == best_window(values, WindowKind.TRIMMED, size)


def test_sliding_window_value_matches_fresh_window():
    """Test that a long-running sliding window does not drift."""
    rng = random.Random(5)
    values = [rng.uniform(6000, 14000) for _ in range(500)]
    window = SlidingTrimmedWindow(5)
    for index, value in enumerate(values):
        window.push(index, value)
    assert window.value_ms() == trimmed_window(values, len(values) - 5, 5).value_ms
