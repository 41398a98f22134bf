"""
Persisted data models.

Every model converts to and from plain dicts (to_dict() / from_dict()),
which is the document stored by the persistence adapters. Timestamps such
as created_at are ISO-8601 strings, so they sort chronologically as text.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..splits.phases import SplitCapture, SplitPhaseDefinition
from ..timing.engine import TimingConfig
from ..timing.result import Penalty, TimingResult

CURRENT_SCHEMA_VERSION = 1

# Official inspection time when inspection is enabled.
INSPECTION_MS = 15000


@dataclass(frozen=True)
class Scramble:
    puzzle_id: str
    notation: str
    seed: Optional[str] = None

    def to_dict(self) -> dict:
        return {"puzzle_id": self.puzzle_id, "notation": self.notation, "seed": self.seed}

    @classmethod
    def from_dict(cls, data: dict) -> "Scramble":
        return cls(
            puzzle_id=data["puzzle_id"],
            notation=data.get("notation", ""),
            seed=data.get("seed"),
        )


@dataclass(frozen=True)
class Session:
    """A named group of solves for one puzzle."""

    id: str
    name: str
    puzzle_id: str
    created_at: str
    inspection_enabled: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "puzzle_id": self.puzzle_id,
            "created_at": self.created_at,
            "inspection_enabled": self.inspection_enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        return cls(
            id=data["id"],
            name=data["name"],
            puzzle_id=data["puzzle_id"],
            created_at=data["created_at"],
            inspection_enabled=data.get("inspection_enabled", True),
        )


@dataclass(frozen=True)
class Solve:
    """
    One recorded attempt.

    Satisfies the statistics AttemptLike protocol through created_at and
    final_duration_ms.
    """

    id: str
    session_id: str
    puzzle_id: str
    scramble: Scramble
    timing: TimingResult
    created_at: str

    @property
    def final_duration_ms(self) -> Optional[float]:
        return self.timing.final_duration_ms

    @property
    def penalty(self) -> Penalty:
        return self.timing.penalty

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "puzzle_id": self.puzzle_id,
            "scramble": self.scramble.to_dict(),
            "timing": self.timing.to_dict(),
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Solve":
        return cls(
            id=data["id"],
            session_id=data["session_id"],
            puzzle_id=data["puzzle_id"],
            scramble=Scramble.from_dict(data["scramble"]),
            timing=TimingResult.from_dict(data["timing"]),
            created_at=data["created_at"],
        )


@dataclass
class Settings:
    """User preferences stored with the history."""

    inspection_enabled: bool = True
    mox_ao5: int = 12
    split_phases: list[SplitPhaseDefinition] = field(default_factory=list)
    hold_to_start: bool = True
    freeze_time_ms: int = 300
    last_puzzle_id: Optional[str] = None

    def timing_config(self) -> TimingConfig:
        """Engine configuration for these preferences."""
        return TimingConfig(
            inspection_duration_ms=INSPECTION_MS if self.inspection_enabled else 0,
            enable_inspection_penalties=self.inspection_enabled,
        )

    def to_dict(self) -> dict:
        return {
            "inspection_enabled": self.inspection_enabled,
            "mox_ao5": self.mox_ao5,
            "split_phases": [p.to_dict() for p in self.split_phases],
            "hold_to_start": self.hold_to_start,
            "freeze_time_ms": self.freeze_time_ms,
            "last_puzzle_id": self.last_puzzle_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        defaults = cls()
        return cls(
            inspection_enabled=data.get("inspection_enabled", defaults.inspection_enabled),
            mox_ao5=data.get("mox_ao5", defaults.mox_ao5),
            split_phases=[
                SplitPhaseDefinition.from_dict(p) for p in data.get("split_phases", [])
            ],
            hold_to_start=data.get("hold_to_start", defaults.hold_to_start),
            freeze_time_ms=data.get("freeze_time_ms", defaults.freeze_time_ms),
            last_puzzle_id=data.get("last_puzzle_id"),
        )


@dataclass
class PersistedData:
    """Everything that survives a restart."""

    schema_version: int = CURRENT_SCHEMA_VERSION
    sessions: list[Session] = field(default_factory=list)
    solves: list[Solve] = field(default_factory=list)
    splits: list[SplitCapture] = field(default_factory=list)
    settings: Settings = field(default_factory=Settings)
    active_puzzle_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "schema_version": self.schema_version,
            "sessions": [s.to_dict() for s in self.sessions],
            "solves": [s.to_dict() for s in self.solves],
            "splits": [c.to_dict() for c in self.splits],
            "settings": self.settings.to_dict(),
            "active_puzzle_id": self.active_puzzle_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PersistedData":
        return cls(
            schema_version=data.get("schema_version", CURRENT_SCHEMA_VERSION),
            sessions=[Session.from_dict(s) for s in data.get("sessions", [])],
            solves=[Solve.from_dict(s) for s in data.get("solves", [])],
            splits=[SplitCapture.from_dict(c) for c in data.get("splits", [])],
            settings=Settings.from_dict(data.get("settings", {})),
            active_puzzle_id=data.get("active_puzzle_id"),
        )
