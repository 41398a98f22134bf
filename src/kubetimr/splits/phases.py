"""
Split phases.

A solve can be divided into named phases (e.g. cross, F2L, OLL, PLL). The
user defines the phases once; during a solve a timestamp (ms since the
solve started) is captured as each phase begins. This module validates
those captures and reduces them to per-phase durations.

Validation is never fatal. Problems are reported as PhaseIssue entries
and only the offending entries are dropped.

Example:
    >>> defs = [SplitPhaseDefinition("cross", 1), SplitPhaseDefinition("f2l", 2)]
    >>> capture = build_split_capture("solve-1", defs, {"cross": 0, "f2l": 2100})
    >>> compute_phase_durations(defs, capture, total_duration_ms=9000)
    {'cross': 2100, 'f2l': 6900}
"""

import logging
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DUPLICATE_PHASE = "Duplicate phase name"
ORDER_NOT_INCREASING = "Order must be strictly increasing"
PHASE_NOT_DEFINED = "Phase not defined"
PHASE_OUT_OF_ORDER = "Phase out of order"
PHASE_REPEATED = "Phase recorded more than once"
TIMESTAMP_DECREASING = "Timestamps must be non-decreasing"


@dataclass(frozen=True)
class SplitPhaseDefinition:
    name: str
    order: int

    def to_dict(self) -> dict:
        return {"name": self.name, "order": self.order}

    @classmethod
    def from_dict(cls, data: dict) -> "SplitPhaseDefinition":
        return cls(name=data["name"], order=data["order"])


@dataclass(frozen=True)
class SplitInstance:
    """One captured checkpoint. timestamp_ms is the offset from solve start."""

    phase: str
    timestamp_ms: float

    def to_dict(self) -> dict:
        return {"phase": self.phase, "timestamp_ms": self.timestamp_ms}

    @classmethod
    def from_dict(cls, data: dict) -> "SplitInstance":
        return cls(phase=data["phase"], timestamp_ms=data["timestamp_ms"])


@dataclass(frozen=True)
class SplitCapture:
    """All checkpoints recorded for one solve."""

    solve_id: str
    phases: tuple[SplitInstance, ...] = ()

    def timestamp_of(self, phase: str) -> Optional[float]:
        for instance in self.phases:
            if instance.phase == phase:
                return instance.timestamp_ms
        return None

    def to_dict(self) -> dict:
        return {
            "solve_id": self.solve_id,
            "phases": [p.to_dict() for p in self.phases],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SplitCapture":
        return cls(
            solve_id=data["solve_id"],
            phases=tuple(SplitInstance.from_dict(p) for p in data.get("phases", [])),
        )


@dataclass
class PhaseIssue:
    """
    A single non-fatal problem found in phase definitions or a capture.

    Attributes:
        phase: Phase name the issue refers to
        message: One of the module-level issue messages
    """

    phase: str
    message: str

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"phase": self.phase, "message": self.message}


@dataclass
class SplitValidationResult:
    """
    Result of validating a capture against phase definitions.

    Attributes:
        ok: True if no issues were found
        issues: Everything found, in capture order
    """

    ok: bool
    issues: list[PhaseIssue]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {"ok": self.ok, "issues": [i.to_dict() for i in self.issues]}


# =============================================================================
# Definitions
# =============================================================================


def normalize_phase_definitions(
    phases: Sequence[SplitPhaseDefinition],
) -> tuple[list[SplitPhaseDefinition], list[PhaseIssue]]:
    """
    Clean up phase definitions.

    - Strips names and drops empty ones.
    - Sorts by order (stable).
    - Drops duplicate names, keeping the lowest order.
    - Reports orders that do not strictly increase.

    Returns:
        (normalized definitions, issues)
    """
    cleaned = [replace(p, name=p.name.strip()) for p in phases if p.name.strip()]
    by_order = sorted(cleaned, key=lambda p: p.order)

    normalized: list[SplitPhaseDefinition] = []
    issues: list[PhaseIssue] = []
    seen: set[str] = set()
    last_order: Optional[int] = None

    for phase in by_order:
        if phase.name in seen:
            issues.append(PhaseIssue(phase=phase.name, message=DUPLICATE_PHASE))
            continue
        seen.add(phase.name)
        if last_order is not None and phase.order <= last_order:
            issues.append(PhaseIssue(phase=phase.name, message=ORDER_NOT_INCREASING))
        normalized.append(phase)
        last_order = phase.order

    return normalized, issues


def _phase_ranks(definitions: Sequence[SplitPhaseDefinition]) -> dict[str, int]:
    """Phase name -> position in the normalized definition order."""
    normalized, _ = normalize_phase_definitions(definitions)
    return {phase.name: rank for rank, phase in enumerate(normalized)}


# =============================================================================
# Captures
# =============================================================================


def validate_split_instances(
    definitions: Sequence[SplitPhaseDefinition],
    instances: Sequence[SplitInstance],
) -> SplitValidationResult:
    """
    Check captured instances against the definitions, in capture order.

    Reports phases that are not defined, phases recorded more than once,
    phases recorded before a phase that should precede them, and
    timestamps lower than the previous recorded one.
    """
    ranks = _phase_ranks(definitions)
    issues: list[PhaseIssue] = []
    seen: set[str] = set()
    last_rank = -1
    last_ts: Optional[float] = None

    for instance in instances:
        rank = ranks.get(instance.phase)
        if rank is None:
            issues.append(PhaseIssue(phase=instance.phase, message=PHASE_NOT_DEFINED))
            continue
        if instance.phase in seen:
            issues.append(PhaseIssue(phase=instance.phase, message=PHASE_REPEATED))
        seen.add(instance.phase)
        if rank < last_rank:
            issues.append(PhaseIssue(phase=instance.phase, message=PHASE_OUT_OF_ORDER))
        if last_ts is not None and instance.timestamp_ms < last_ts:
            issues.append(PhaseIssue(phase=instance.phase, message=TIMESTAMP_DECREASING))
        last_rank = rank
        last_ts = instance.timestamp_ms

    return SplitValidationResult(ok=not issues, issues=issues)


def sanitize_capture(
    definitions: Sequence[SplitPhaseDefinition],
    capture: SplitCapture,
) -> tuple[SplitCapture, SplitValidationResult]:
    """
    Validate a capture and keep everything usable.

    Entries are put in definition order. Unknown phases, repeats of an
    already-kept phase and timestamps below the previous kept one are
    dropped; the rest of the capture survives.

    Returns:
        (cleaned capture, validation of the original capture)
    """
    validation = validate_split_instances(definitions, capture.phases)
    ranks = _phase_ranks(definitions)

    known = sorted(
        (i for i in capture.phases if i.phase in ranks),
        key=lambda i: ranks[i.phase],
    )
    kept: list[SplitInstance] = []
    for instance in known:
        if kept and kept[-1].phase == instance.phase:
            continue
        if kept and instance.timestamp_ms < kept[-1].timestamp_ms:
            continue
        kept.append(instance)

    dropped = len(capture.phases) - len(kept)
    if dropped:
        logger.debug(
            "Dropped %s split entries from capture for solve %s",
            dropped,
            capture.solve_id,
        )
    return replace(capture, phases=tuple(kept)), validation


def build_split_capture(
    solve_id: str,
    definitions: Sequence[SplitPhaseDefinition],
    timestamps: Mapping[str, Optional[float]],
) -> SplitCapture:
    """Build a capture from phase name -> timestamp, in definition order."""
    normalized, _ = normalize_phase_definitions(definitions)
    phases = tuple(
        SplitInstance(phase=d.name, timestamp_ms=timestamps[d.name])
        for d in normalized
        if timestamps.get(d.name) is not None
    )
    return SplitCapture(solve_id=solve_id, phases=phases)


def append_phase_timestamp(
    capture: SplitCapture,
    definitions: Sequence[SplitPhaseDefinition],
    phase: str,
    timestamp_ms: float,
) -> SplitCapture:
    """
    Record a checkpoint, keeping the capture in definition order.

    Unknown phases are ignored. A phase already captured is only moved
    forward in time: a lower timestamp than the recorded one is ignored.
    """
    ranks = _phase_ranks(definitions)
    if phase not in ranks:
        return capture

    existing = capture.timestamp_of(phase)
    if existing is not None:
        if timestamp_ms < existing:
            return capture
        phases = tuple(
            SplitInstance(phase=phase, timestamp_ms=timestamp_ms) if i.phase == phase else i
            for i in capture.phases
        )
        return replace(capture, phases=phases)

    phases = list(capture.phases)
    phases.append(SplitInstance(phase=phase, timestamp_ms=timestamp_ms))
    phases.sort(key=lambda i: ranks.get(i.phase, len(ranks)))
    return replace(capture, phases=tuple(phases))


def compute_phase_durations(
    definitions: Sequence[SplitPhaseDefinition],
    capture: SplitCapture,
    total_duration_ms: Optional[float] = None,
) -> dict[str, Optional[float]]:
    """
    Reduce a capture to a duration per defined phase.

    A phase lasts until the next captured phase starts, or until
    total_duration_ms for the last captured one. Pass the solve's raw
    duration as the total: a +2 is not time spent in the last phase.

    Returns:
        Phase name -> duration in ms, for every defined phase. None for
        phases not captured, for the last phase without a total, and for
        segments whose end precedes their start.
    """
    normalized, _ = normalize_phase_definitions(definitions)
    ranks = {d.name: rank for rank, d in enumerate(normalized)}

    first_seen: dict[str, SplitInstance] = {}
    for instance in capture.phases:
        if instance.phase in ranks and instance.phase not in first_seen:
            first_seen[instance.phase] = instance
    ordered = sorted(first_seen.values(), key=lambda i: ranks[i.phase])

    durations: dict[str, Optional[float]] = {d.name: None for d in normalized}
    for position, instance in enumerate(ordered):
        if position + 1 < len(ordered):
            end = ordered[position + 1].timestamp_ms
        else:
            end = total_duration_ms
        if end is not None and end >= instance.timestamp_ms:
            durations[instance.phase] = end - instance.timestamp_ms
    return durations


def upsert_capture(
    captures: Sequence[SplitCapture], capture: SplitCapture
) -> list[SplitCapture]:
    """Replace the capture for the same solve, or append. Never duplicates."""
    result = list(captures)
    for index, existing in enumerate(result):
        if existing.solve_id == capture.solve_id:
            result[index] = capture
            return result
    result.append(capture)
    return result
