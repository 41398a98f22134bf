"""Tests for penalties, timing results and the timing state machine."""

import pytest

from kubetimr.timing import (
    EngineState,
    ManualClock,
    Penalty,
    TimingConfig,
    TimingResult,
    TimingState,
    apply_manual_penalty,
    begin_solve,
    combine_penalties,
    elapsed_ms,
    expire_inspection,
    format_duration,
    handle_toggle,
    inspection_remaining_ms,
    new_engine_state,
    penalty_for_inspection,
    start,
    stop,
)

INSPECTION = TimingConfig(inspection_duration_ms=15000)


def run_attempt(config: TimingConfig, inspection_ms: float, solve_ms: float) -> EngineState:
    state = start(new_engine_state(config), 1000)
    state = begin_solve(state, 1000 + inspection_ms)
    return stop(state, 1000 + inspection_ms + solve_ms)


def test_combine_penalties():
    """Test that the most severe penalty wins and nothing accumulates."""
    assert combine_penalties() == Penalty.NONE
    assert combine_penalties(Penalty.NONE, Penalty.PLUS2) == Penalty.PLUS2
    assert combine_penalties(Penalty.PLUS2, Penalty.PLUS2) == Penalty.PLUS2
    assert combine_penalties(Penalty.PLUS2, Penalty.DNF) == Penalty.DNF
    assert combine_penalties(Penalty.DNF, Penalty.NONE) == Penalty.DNF


def test_penalty_for_inspection_boundaries():
    """Test inspection penalty thresholds."""
    assert penalty_for_inspection(15000, 15000) == Penalty.NONE
    assert penalty_for_inspection(15001, 15000) == Penalty.PLUS2
    assert penalty_for_inspection(17000, 15000) == Penalty.PLUS2
    assert penalty_for_inspection(17001, 15000) == Penalty.DNF
    assert penalty_for_inspection(30000, 15000, enabled=False) == Penalty.NONE


def test_timing_result_from_timestamps():
    """Test final duration derivation."""
    result = TimingResult.from_timestamps(1000, 11000, Penalty.PLUS2)
    assert result.raw_duration_ms == 10000
    assert result.final_duration_ms == 12000
    dnf = result.with_penalty(Penalty.DNF)
    assert dnf.final_duration_ms is None
    assert dnf.is_dnf
    assert dnf.raw_duration_ms == 10000
    assert result.with_penalty(Penalty.PLUS2) is result


def test_timing_result_dict_roundtrip():
    """Test that from_dict re-derives final duration from penalty."""
    result = TimingResult.from_timestamps(0, 9000, Penalty.PLUS2, inspection_duration_ms=8000)
    data = result.to_dict()
    data["final_duration_ms"] = 1
    restored = TimingResult.from_dict(data)
    assert restored.final_duration_ms == 11000
    assert restored.inspection_duration_ms == 8000


def test_format_duration():
    """Test display formatting."""
    assert format_duration(12345) == "12.34"
    assert format_duration(62500) == "1:02.50"
    assert format_duration(999) == "0.99"
    assert format_duration(None) == "DNF"
    assert format_duration(None, dnf_text="--") == "--"


def test_inspection_within_limit_no_penalty():
    """Test a solve started at exactly the inspection limit."""
    state = run_attempt(INSPECTION, 15000, 10000)
    assert state.status is TimingState.STOPPED
    assert state.result.penalty == Penalty.NONE
    assert state.result.final_duration_ms == 10000


def test_inspection_overrun_plus2():
    """Test +2 for 1ms over the limit."""
    state = run_attempt(INSPECTION, 15001, 10000)
    assert state.inspection_penalty == Penalty.PLUS2
    assert state.result.final_duration_ms == 12000


def test_inspection_overrun_dnf():
    """Test DNF beyond limit + 2000."""
    state = run_attempt(INSPECTION, 17001, 10000)
    assert state.result.penalty == Penalty.DNF
    assert state.result.final_duration_ms is None
    assert state.result.raw_duration_ms == 10000


def test_no_inspection_starts_running():
    """Test that start goes straight to running without inspection."""
    state = start(new_engine_state(), 500)
    assert state.status is TimingState.RUNNING
    assert state.run_start_ts == 500
    state = stop(state, 8500)
    assert state.result.raw_duration_ms == 8000
    assert state.result.inspection_duration_ms == 0


def test_stop_result_invariants():
    """Test raw duration and final duration relations."""
    state = run_attempt(INSPECTION, 5000, 7345)
    result = state.result
    assert result.raw_duration_ms == result.end_ts - result.start_ts
    assert result.end_ts >= result.start_ts
    assert result.final_duration_ms == result.raw_duration_ms
    assert result.inspection_duration_ms == 5000


def test_ignored_transitions_return_same_state():
    """Test that stray events leave the state untouched."""
    idle = new_engine_state(INSPECTION)
    assert begin_solve(idle, 10) is idle
    assert stop(idle, 10) is idle
    assert expire_inspection(idle, 10) is idle

    inspecting = start(idle, 0)
    assert start(inspecting, 5) is inspecting
    assert stop(inspecting, 5) is inspecting

    running = begin_solve(inspecting, 3000)
    assert start(running, 4000) is running
    assert begin_solve(running, 4000) is running


def test_handle_toggle_cycle():
    """Test the full toggle cycle including restart from stopped."""
    state = new_engine_state(INSPECTION)
    state = handle_toggle(state, 0)
    assert state.status is TimingState.INSPECTION
    state = handle_toggle(state, 16000)
    assert state.status is TimingState.RUNNING
    state = handle_toggle(state, 26000)
    assert state.status is TimingState.STOPPED
    assert state.result.final_duration_ms == 12000

    state = handle_toggle(state, 30000)
    assert state.status is TimingState.INSPECTION
    assert state.result is None
    assert state.inspection_penalty == Penalty.NONE


def test_manual_penalty_combines_with_inspection():
    """Test that manual penalties never undo an inspection penalty."""
    state = run_attempt(INSPECTION, 16000, 10000)
    assert state.result.penalty == Penalty.PLUS2

    cleared = apply_manual_penalty(state, Penalty.NONE)
    assert cleared is state
    assert cleared.result.penalty == Penalty.PLUS2

    dnf = apply_manual_penalty(state, Penalty.DNF)
    assert dnf.result.penalty == Penalty.DNF
    assert dnf.result.final_duration_ms is None

    back = apply_manual_penalty(dnf, Penalty.NONE)
    assert back.result.penalty == Penalty.PLUS2
    assert back.result.final_duration_ms == 12000


def test_manual_penalty_idempotent():
    """Test that applying the same penalty twice changes nothing."""
    state = run_attempt(INSPECTION, 1000, 9000)
    once = apply_manual_penalty(state, Penalty.PLUS2)
    twice = apply_manual_penalty(once, Penalty.PLUS2)
    assert twice is once
    assert once.result.final_duration_ms == 11000
    assert once.result.start_ts == state.result.start_ts
    assert once.result.end_ts == state.result.end_ts


def test_manual_penalty_without_result_ignored():
    """Test that a penalty before any result is a no-op."""
    state = start(new_engine_state(INSPECTION), 0)
    assert apply_manual_penalty(state, Penalty.DNF) is state


def test_expire_inspection():
    """Test the inspection timeout policy."""
    state = start(new_engine_state(INSPECTION), 0)
    assert expire_inspection(state, 17000) is state

    expired = expire_inspection(state, 17001)
    assert expired.status is TimingState.STOPPED
    assert expired.result.penalty == Penalty.DNF
    assert expired.result.raw_duration_ms == 0
    assert expired.inspection_elapsed_ms == 17001


def test_display_helpers():
    """Test elapsed and remaining time helpers."""
    state = start(new_engine_state(INSPECTION), 0)
    assert inspection_remaining_ms(state, 4000) == 11000
    assert inspection_remaining_ms(state, 16000) == 0
    assert elapsed_ms(state, 4000) == 0

    running = begin_solve(state, 5000)
    assert inspection_remaining_ms(running, 6000) is None
    assert elapsed_ms(running, 7500) == 2500

    stopped = stop(running, 9000)
    assert elapsed_ms(stopped, 50000) == 4000


def test_manual_clock():
    """Test ManualClock movement."""
    clock = ManualClock(100)
    clock.advance(50)
    assert clock.now() == 150
    clock.set(200)
    assert clock.now() == 200
    with pytest.raises(ValueError):
        clock.set(100)


def test_negative_inspection_rejected():
    """Test config validation."""
    with pytest.raises(ValueError):
        TimingConfig(inspection_duration_ms=-1)
