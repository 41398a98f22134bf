#!/usr/bin/env python3
"""
Time solves in the terminal and append them to a history file.

Press Enter to start inspection, Enter to start the solve, Enter to stop.
After each solve type "2" for +2, "d" for DNF, or just Enter to keep it.
Ctrl+C saves and quits.

Usage:
    uv run examples/terminal_timer.py
    uv run examples/terminal_timer.py history.ktmr

Environment:
    KUBETIMR_DATA_PATH: History file if no path is given (in-memory otherwise)
"""

import sys

from kubetimr import (
    Penalty,
    Scramble,
    SolveBook,
    Timer,
    TimingState,
    create_adapter,
    format_duration,
)

PUZZLE = "333"


def show_stats(book: SolveBook, session_id: str):
    stats = book.stats(session_id)
    if stats is None:
        return
    rolling = stats.rolling
    for label, window in (("mo3", rolling.mo3), ("ao5", rolling.ao5), ("ao12", rolling.ao12)):
        if window is not None:
            print(f"  {label}: {format_duration(window.value_ms)}")
    print(f"  solves: {rolling.count}  best: {format_duration(rolling.best_ms, '-')}")


def main():
    adapter = create_adapter(sys.argv[1] if len(sys.argv) > 1 else None)
    book = SolveBook.from_data(adapter.load())
    session = book.create_session("Terminal", PUZZLE)
    timer = Timer(config=book.settings.timing_config())

    print(f"Session {session.name}, inspection {timer.config.inspection_duration_ms / 1000:.0f}s\n")
    try:
        while True:
            input("Enter to start ")
            if timer.toggle() is TimingState.INSPECTION:
                input("Inspecting... Enter to start the solve ")
                timer.poll()
                if timer.status is TimingState.INSPECTION:
                    timer.toggle()
            if timer.status is TimingState.RUNNING:
                input("Solving... Enter to stop ")
                timer.toggle()

            answer = input(f"{format_duration(timer.result.final_duration_ms)}  [2/d/Enter] ").strip()
            if answer == "2":
                timer.set_penalty(Penalty.PLUS2)
            elif answer.lower() == "d":
                timer.set_penalty(Penalty.DNF)

            solve = book.record_attempt(session.id, Scramble(PUZZLE, ""), timer.result)
            print(f"Recorded {format_duration(solve.final_duration_ms)}")
            show_stats(book, session.id)
            print("-" * 30)
            timer.reset()
    except (KeyboardInterrupt, EOFError):
        print()
    finally:
        adapter.save(book.to_data())
        print(f"Saved {len(book)} solves")


if __name__ == "__main__":
    main()
