#!/usr/bin/env python3
"""
Print statistics, personal bests and split breakdowns from a history file.

Usage:
    uv run examples/session_report.py history.ktmr
    uv run examples/session_report.py history.json --json

Environment:
    KUBETIMR_DATA_PATH: History file if no path is given
"""

import json
import sys

from kubetimr import SolveBook, create_adapter, format_duration


def main():
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    as_json = "--json" in sys.argv

    adapter = create_adapter(args[0] if args else None)
    book = SolveBook.from_data(adapter.load())
    if not book.sessions:
        print("No sessions recorded")
        return

    report = {}
    for session in book.sessions.values():
        stats = book.stats(session.id)
        if stats is None:
            continue
        report[session.id] = stats.to_dict()
        if as_json:
            continue

        rolling = stats.rolling
        print(f"{session.name} ({session.puzzle_id}): {rolling.count} solves")
        print(f"  best {format_duration(rolling.best_ms, '-')}  "
              f"worst {format_duration(rolling.worst_ms, '-')}  "
              f"mean {format_duration(rolling.mean_ms, '-')}")
        for label in ("mo3", "ao5", "ao12", "ao50", "ao100"):
            window = getattr(rolling, label)
            if window is not None:
                print(f"  {label}: {format_duration(window.value_ms)}")
        if rolling.mox_ao5 is not None and rolling.mox_ao5.result is not None:
            print(f"  mo{rolling.mox_ao5.x}ao5: {format_duration(rolling.mox_ao5.result.value_ms)}")

        last = book.solves_for(session.id)[-1]
        breakdown = book.split_breakdown(last.id)
        if breakdown is not None:
            print(f"  last solve splits ({breakdown.captured_count}/{breakdown.defined_count}):")
            for phase in breakdown.phases:
                if phase.duration_ms is None:
                    continue
                delta = f"{phase.delta_ms / 1000:+.2f}" if phase.delta_ms is not None else ""
                print(f"    {phase.name:<8} {format_duration(phase.duration_ms):>7} "
                      f"{phase.share_pct:5.1f}% {delta}")
            if breakdown.has_untracked:
                print(f"    untracked {format_duration(breakdown.untracked_ms)}")
        print()

    if as_json:
        print(json.dumps(report, indent=2))
        return

    print("Personal bests:")
    for pb in book.personal_bests():
        print(f"  {pb.category.value:<7} {format_duration(pb.value_ms)}  ({pb.achieved_at})")


if __name__ == "__main__":
    main()
