"""Tests for session statistics and personal bests."""

import random

from kubetimr.stats import (
    Attempt,
    PersonalBest,
    PersonalBestCategory,
    StatsOptions,
    compute_session_stats,
    merge_personal_bests,
    record_if_better,
)
from kubetimr.timing import Penalty


def attempts(*durations):
    return [
        Attempt(
            id=f"s{i}",
            created_at=f"2026-01-01T00:{i // 60:02d}:{i % 60:02d}",
            final_duration_ms=d,
            penalty=Penalty.DNF if d is None else Penalty.NONE,
        )
        for i, d in enumerate(durations)
    ]


def test_empty_history():
    """Test that nothing is computed from an empty history."""
    stats = compute_session_stats([])
    assert stats.rolling.count == 0
    assert stats.rolling.best_ms is None
    assert stats.rolling.ao5 is None
    assert stats.personal_bests == []


def test_rolling_aggregates():
    """Test trailing aggregates and summary values."""
    stats = compute_session_stats(attempts(10000, 20000, 30000, 40000, 50000))
    rolling = stats.rolling
    assert rolling.count == 5
    assert rolling.best_ms == 10000
    assert rolling.worst_ms == 50000
    assert rolling.mean_ms == 30000
    assert rolling.ao5.value_ms == 30000
    assert rolling.mo3.value_ms == 40000
    assert rolling.ao12 is None


def test_dnf_excluded_from_summary():
    """Test that DNFs are skipped by best/worst/mean."""
    rolling = compute_session_stats(attempts(10000, None, 12000)).rolling
    assert rolling.best_ms == 10000
    assert rolling.worst_ms == 12000
    assert rolling.mean_ms == 11000
    assert rolling.mo3.is_dnf


def test_input_order_does_not_matter():
    """Test that attempts are sorted chronologically."""
    ordered = attempts(9000, 8000, 7000, 6000, 5000)
    shuffled = [ordered[3], ordered[0], ordered[4], ordered[2], ordered[1]]
    assert compute_session_stats(shuffled) == compute_session_stats(ordered)
    timeline = compute_session_stats(shuffled).timeline
    assert [p.solve_id for p in timeline] == ["s0", "s1", "s2", "s3", "s4"]


def test_single_pb_tie_keeps_earliest():
    """Test that an equal single does not replace the record."""
    stats = compute_session_stats(attempts(12000, 11000, 11000))
    single = stats.personal_best(PersonalBestCategory.SINGLE)
    assert single.value_ms == 11000
    assert single.solve_ids == ("s1",)
    assert single.achieved_at == "2026-01-01T00:00:01"


def test_window_pbs_and_achieved_at():
    """Test Mo3/Ao5 records and their achievement time."""
    stats = compute_session_stats(attempts(9000, 8000, 7000, 20000, 20000, 20000))
    mo3 = stats.personal_best(PersonalBestCategory.MO3)
    assert mo3.value_ms == 8000
    assert mo3.solve_ids == ("s0", "s1", "s2")
    assert mo3.achieved_at == "2026-01-01T00:00:02"

    ao5 = stats.personal_best(PersonalBestCategory.AO5)
    # [9,8,7,20,20] -> 9,8,20 kept
    assert ao5.solve_ids == ("s0", "s1", "s3")
    assert ao5.achieved_at == "2026-01-01T00:00:03"
    assert stats.personal_best(PersonalBestCategory.AO12) is None


def test_custom_mox_ao5():
    """Test the configurable mean of Ao5s."""
    history = attempts(10000, 20000, 30000, 40000, 50000, 60000)
    stats = compute_session_stats(history, StatsOptions(mox_ao5=2))
    assert stats.rolling.mox_ao5.x == 2
    assert stats.rolling.mox_ao5.result.value_ms == 35000
    custom = stats.personal_best(PersonalBestCategory.CUSTOM)
    assert custom.size == 2
    assert custom.value_ms == 35000
    assert stats.personal_best(PersonalBestCategory.CUSTOM, size=2) == custom
    assert stats.personal_best(PersonalBestCategory.CUSTOM, size=3) is None

    disabled = compute_session_stats(history)
    assert disabled.rolling.mox_ao5 is None
    assert disabled.personal_best(PersonalBestCategory.CUSTOM) is None


def test_record_if_better():
    """Test personal best replacement rules."""
    bests = {}
    first = PersonalBest(PersonalBestCategory.SINGLE, 1, 9000, ("a",), "2026-01-02")
    same = PersonalBest(PersonalBestCategory.SINGLE, 1, 9000, ("b",), "2026-01-03")
    earlier = PersonalBest(PersonalBestCategory.SINGLE, 1, 9000, ("c",), "2026-01-01")
    better = PersonalBest(PersonalBestCategory.SINGLE, 1, 8999, ("d",), "2026-01-04")

    assert record_if_better(bests, first)
    assert not record_if_better(bests, same)
    assert record_if_better(bests, earlier)
    assert record_if_better(bests, better)
    assert bests[(PersonalBestCategory.SINGLE, 1)].solve_ids == ("d",)


def test_merge_personal_bests():
    """Test merging records from several sessions."""
    a = compute_session_stats(attempts(10000, 11000, 12000)).personal_bests
    b = compute_session_stats(attempts(9000)).personal_bests
    merged = merge_personal_bests(a, b)
    categories = {pb.category: pb for pb in merged}
    assert categories[PersonalBestCategory.SINGLE].value_ms == 9000
    assert categories[PersonalBestCategory.MO3].value_ms == 11000


def test_to_dict_serializable():
    """Test that stats serialize to plain values."""
    data = compute_session_stats(attempts(10000, 20000, 30000, 40000, 50000)).to_dict()
    assert data["rolling"]["ao5"]["indices"] == [1, 2, 3]
    assert data["timeline"][0]["penalty"] == "none"
    assert data["personal_bests"][0]["category"] == "single"


def test_float_ao5_pb_matches_trailing_ao5():
    """Test that the best-ever Ao5 equals the trailing Ao5 when the last window is best."""
    rng = random.Random(17)
    slow = [rng.uniform(20000, 30000) for _ in range(20)]
    history = attempts(*slow, 7100.37, 7300.91, 6900.13, 7222.58, 5000.77)
    stats = compute_session_stats(history)

    ao5 = stats.personal_best(PersonalBestCategory.AO5)
    trailing = stats.rolling.ao5
    assert ao5.value_ms == trailing.value_ms
    assert ao5.solve_ids == tuple(f"s{i}" for i in trailing.indices)


def test_repeated_identical_window_keeps_earliest_pb():
    """Test that the same five float times later in the history do not replace the record."""
    block = [7123.45, 8234.56, 6345.67, 9456.78, 7567.89]
    filler = [20000.5, 21000.25, 22000.75, 23000.125, 24000.375]
    stats = compute_session_stats(attempts(*block, *filler, *block))

    ao5 = stats.personal_best(PersonalBestCategory.AO5)
    assert ao5.solve_ids == ("s0", "s1", "s4")
    assert ao5.achieved_at == "2026-01-01T00:00:04"


def test_merge_keeps_one_custom_record_per_x():
    """Test that custom means of different X merge independently of order."""
    history = attempts(10000, 20000, 30000, 40000, 50000, 60000, 70000)
    x2 = compute_session_stats(history, StatsOptions(mox_ao5=2)).personal_bests
    x3 = compute_session_stats(history, StatsOptions(mox_ao5=3)).personal_bests

    forward = merge_personal_bests(x2, x3)
    backward = merge_personal_bests(x3, x2)
    assert forward == backward
    customs = [pb for pb in forward if pb.category == PersonalBestCategory.CUSTOM]
    assert [pb.size for pb in customs] == [2, 3]
    assert customs[0].value_ms == 35000
    assert customs[1].value_ms == 40000
