"""
Solve history ledger.

SolveBook holds sessions, solves and split captures in memory with O(1)
lookup by id, plus a per-session index so one session's history can be
pulled without scanning every solve. Statistics are recomputed from the
ledger on demand; nothing derived is stored.

Example:
    >>> book = SolveBook()
    >>> session = book.create_session("3x3 practice", "333")
    >>> solve = book.record_attempt(session.id, scramble, timer.result)
    >>> book.update_penalty(solve.id, Penalty.PLUS2)
    >>> book.stats(session.id).rolling.ao5
"""

import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Iterable, Optional

from ..splits.breakdown import SplitBreakdown, phase_averages, split_breakdown
from ..splits.phases import SplitCapture
from ..stats.session import (
    PersonalBest,
    SessionStats,
    StatsOptions,
    compute_session_stats,
    merge_personal_bests,
)
from ..timing.result import Penalty, TimingResult
from .models import PersistedData, Scramble, Session, Settings, Solve
from .persistence import UnknownSessionError

logger = logging.getLogger(__name__)


def new_id(now_ms: Optional[int] = None) -> str:
    """Id of the form "<ms since epoch>-<10 hex chars>"."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{now_ms}-{secrets.token_hex(5)}"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


class SolveBook:
    """
    In-memory history of sessions, solves and split captures.

    Uses:
    - dict for O(1) lookup of sessions, solves and captures by id
    - session_id -> set of solve ids for per-session queries

    Solves are immutable; edits replace the stored Solve.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.active_puzzle_id: Optional[str] = None
        self.sessions: dict[str, Session] = {}
        self.solves: dict[str, Solve] = {}
        self.splits: dict[str, SplitCapture] = {}  # solve_id -> capture
        self.session_to_ids: dict[str, set[str]] = {}

    def __len__(self) -> int:
        return len(self.solves)

    # =========================================================================
    # Sessions
    # =========================================================================

    def add_session(self, session: Session) -> bool:
        """Add a session. Returns False if the id already exists."""
        if session.id in self.sessions:
            return False
        self.sessions[session.id] = session
        self.session_to_ids.setdefault(session.id, set())
        return True

    def create_session(
        self, name: str, puzzle_id: str, inspection_enabled: Optional[bool] = None
    ) -> Session:
        """Create and add a session with a fresh id."""
        if inspection_enabled is None:
            inspection_enabled = self.settings.inspection_enabled
        session = Session(
            id=new_id(),
            name=name,
            puzzle_id=puzzle_id,
            created_at=utc_now(),
            inspection_enabled=inspection_enabled,
        )
        self.add_session(session)
        self.active_puzzle_id = puzzle_id
        return session

    def delete_session(self, session_id: str) -> bool:
        """Remove a session with all of its solves and captures."""
        if session_id not in self.sessions:
            return False
        for solve_id in list(self.session_to_ids.get(session_id, ())):
            self.delete_solve(solve_id)
        del self.sessions[session_id]
        self.session_to_ids.pop(session_id, None)
        logger.debug("Deleted session %s", session_id)
        return True

    # =========================================================================
    # Solves
    # =========================================================================

    def add_solve(self, solve: Solve) -> bool:
        """
        Add a solve. Duplicate ids are skipped.

        Raises:
            UnknownSessionError: solve.session_id is not in the book
        """
        if solve.session_id not in self.sessions:
            raise UnknownSessionError(f"Unknown session: {solve.session_id}")
        if solve.id in self.solves:
            return False
        self.solves[solve.id] = solve
        self.session_to_ids[solve.session_id].add(solve.id)
        return True

    def add_solves(self, solves: Iterable[Solve]) -> int:
        """Add many solves. Returns how many were new."""
        return sum(1 for solve in solves if self.add_solve(solve))

    def record_attempt(
        self,
        session_id: str,
        scramble: Scramble,
        timing: TimingResult,
        created_at: Optional[str] = None,
    ) -> Solve:
        """Store a finished attempt as a new solve in session_id."""
        session = self.sessions.get(session_id)
        if session is None:
            raise UnknownSessionError(f"Unknown session: {session_id}")
        solve = Solve(
            id=new_id(),
            session_id=session_id,
            puzzle_id=session.puzzle_id,
            scramble=scramble,
            timing=timing,
            created_at=created_at or utc_now(),
        )
        self.add_solve(solve)
        return solve

    def get_solve(self, solve_id: str) -> Optional[Solve]:
        return self.solves.get(solve_id)

    def update_penalty(self, solve_id: str, penalty: Penalty) -> Optional[Solve]:
        """
        Replace a solve's penalty outright and recompute its final duration.

        Unlike the timing engine, this does not combine with the previous
        penalty: an edit from DNF to none clears the DNF.

        Returns:
            Updated Solve, or None if the id is unknown
        """
        solve = self.solves.get(solve_id)
        if solve is None:
            return None
        timing = solve.timing.with_penalty(penalty)
        if timing is solve.timing:
            return solve
        updated = Solve(
            id=solve.id,
            session_id=solve.session_id,
            puzzle_id=solve.puzzle_id,
            scramble=solve.scramble,
            timing=timing,
            created_at=solve.created_at,
        )
        self.solves[solve_id] = updated
        logger.debug("Penalty of %s set to %s", solve_id, penalty.value)
        return updated

    def delete_solve(self, solve_id: str) -> bool:
        """Remove a solve and its split capture. Returns True if found."""
        solve = self.solves.pop(solve_id, None)
        if solve is None:
            return False
        ids = self.session_to_ids.get(solve.session_id)
        if ids is not None:
            ids.discard(solve_id)
        self.splits.pop(solve_id, None)
        return True

    def solves_for(self, session_id: str) -> list[Solve]:
        """Solves of a session, oldest first."""
        ids = self.session_to_ids.get(session_id, set())
        # Insertion order breaks created_at ties
        return sorted(
            (s for s in self.solves.values() if s.id in ids),
            key=lambda s: s.created_at,
        )

    # =========================================================================
    # Splits
    # =========================================================================

    def record_split(self, capture: SplitCapture) -> bool:
        """Store or replace the capture of a known solve."""
        if capture.solve_id not in self.solves:
            return False
        self.splits[capture.solve_id] = capture
        return True

    def split_for(self, solve_id: str) -> Optional[SplitCapture]:
        return self.splits.get(solve_id)

    def split_breakdown(self, solve_id: str) -> Optional[SplitBreakdown]:
        """
        Breakdown of one solve's capture, with deltas against the averages
        of its session. None without a capture.
        """
        capture = self.splits.get(solve_id)
        solve = self.solves.get(solve_id)
        if capture is None or solve is None:
            return None

        phases = self.settings.split_phases
        session_solves = self.solves_for(solve.session_id)
        totals = {s.id: s.timing.raw_duration_ms for s in session_solves}
        captures = [self.splits[s.id] for s in session_solves if s.id in self.splits]
        return split_breakdown(
            phases,
            capture,
            solve.timing.raw_duration_ms,
            averages=phase_averages(phases, captures, totals),
        )

    # =========================================================================
    # Statistics
    # =========================================================================

    def stats(
        self, session_id: str, options: Optional[StatsOptions] = None
    ) -> Optional[SessionStats]:
        """Statistics of a session, None when it has no solves."""
        solves = self.solves_for(session_id)
        if not solves:
            return None
        options = options or StatsOptions(mox_ao5=self.settings.mox_ao5)
        return compute_session_stats(solves, options)

    def personal_bests(
        self, puzzle_id: Optional[str] = None, options: Optional[StatsOptions] = None
    ) -> list[PersonalBest]:
        """
        Personal bests across sessions, optionally for one puzzle.

        Windows never span two sessions; each session is scanned on its
        own and the records merged.
        """
        groups = []
        for session in self.sessions.values():
            if puzzle_id is not None and session.puzzle_id != puzzle_id:
                continue
            session_stats = self.stats(session.id, options)
            if session_stats is not None:
                groups.append(session_stats.personal_bests)
        return merge_personal_bests(*groups)

    # =========================================================================
    # Persistence
    # =========================================================================

    def to_data(self) -> PersistedData:
        return PersistedData(
            sessions=list(self.sessions.values()),
            solves=list(self.solves.values()),
            splits=list(self.splits.values()),
            settings=self.settings,
            active_puzzle_id=self.active_puzzle_id,
        )

    @classmethod
    def from_data(cls, data: PersistedData) -> "SolveBook":
        """
        Rebuild a book from a loaded document.

        Solves of unknown sessions and captures of unknown solves are
        dropped with a warning.
        """
        book = cls(settings=data.settings)
        book.active_puzzle_id = data.active_puzzle_id
        for session in data.sessions:
            book.add_session(session)
        for solve in data.solves:
            if solve.session_id not in book.sessions:
                logger.warning("Dropping solve %s of unknown session %s", solve.id, solve.session_id)
                continue
            book.add_solve(solve)
        for capture in data.splits:
            if not book.record_split(capture):
                logger.warning("Dropping split capture of unknown solve %s", capture.solve_id)
        return book
