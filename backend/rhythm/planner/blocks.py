"""Rhythm block entity and the scheduling constraint union."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Callable, ClassVar, Dict, List, Literal, Optional, Tuple, Union
from uuid import UUID, uuid4

from rhythm.planner.errors import MissingDurationError, TimeRangeError, ValidationError

BlockCategory = Literal["focus", "rest", "meal", "exercise", "break", "meeting", "hobby", "connect", "chore"]
Intensity = Literal["high", "medium", "low"]
EnergyImpact = Literal["draining", "neutral", "recharging"]
Priority = Literal["essential", "important", "optional"]

BLOCK_CATEGORIES: Tuple[str, ...] = (
    "focus",
    "rest",
    "meal",
    "exercise",
    "break",
    "meeting",
    "hobby",
    "connect",
    "chore",
)

PRIORITY_RANK: Dict[str, int] = {"essential": 1, "important": 2, "optional": 3}


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise TimeRangeError(f"Start time must be before end time ({self.start} >= {self.end})")

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FixedConstraint:
    type: ClassVar[str] = "fixed"
    time: datetime


@dataclass(frozen=True)
class WindowConstraint:
    type: ClassVar[str] = "window"
    start: datetime
    end: datetime


@dataclass(frozen=True)
class PreferredConstraint:
    type: ClassVar[str] = "preferred"
    time: datetime


@dataclass(frozen=True)
class DeadlineConstraint:
    type: ClassVar[str] = "deadline"
    latest_time: datetime


@dataclass(frozen=True)
class AfterConstraint:
    type: ClassVar[str] = "after"
    earliest_time: datetime


@dataclass(frozen=True)
class DependsOnConstraint:
    type: ClassVar[str] = "dependsOn"
    block_id: UUID


@dataclass(frozen=True)
class RecurringConstraint:
    type: ClassVar[str] = "recurring"
    days: Tuple[int, ...]
    time: datetime


@dataclass(frozen=True)
class NaturalLanguageConstraint:
    type: ClassVar[str] = "naturalLanguage"
    description: str


Constraint = Union[
    FixedConstraint,
    WindowConstraint,
    PreferredConstraint,
    DeadlineConstraint,
    AfterConstraint,
    DependsOnConstraint,
    RecurringConstraint,
    NaturalLanguageConstraint,
]

# Highest priority first; the first one a block carries is its primary constraint.
HARD_CONSTRAINT_PRIORITY: Tuple[str, ...] = ("fixed", "window", "deadline", "after", "dependsOn", "recurring")
SOFT_CONSTRAINT_TYPES: Tuple[str, ...] = ("preferred", "naturalLanguage")


def is_hard_constraint(constraint: Constraint) -> bool:
    return constraint.type in HARD_CONSTRAINT_PRIORITY


# ---------------------------------------------------------------------------
# Block
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class Block:
    """
    A unit of schedulable activity.

    A block is planned iff it carries a time range. The range can only be set
    through ``plan`` which re-validates it; ``unplan`` reverts the block.
    Copies get a fresh identity and remember the block they came from in
    ``source_id``.
    """

    label: str
    category: BlockCategory
    intensity: Intensity
    energy_impact: EnergyImpact
    priority: Priority
    constraints: List[Constraint] = field(default_factory=list)
    user_order: float = 0
    duration_minutes: Optional[int] = None
    min_duration: Optional[int] = None
    max_duration: Optional[int] = None
    is_completed: Optional[bool] = None
    notes: Optional[str] = None
    time_range: Optional[TimeRange] = None
    id: UUID = field(default_factory=uuid4)
    source_id: Optional[UUID] = None

    def __post_init__(self) -> None:
        if self.time_range is not None and not isinstance(self.time_range, TimeRange):
            raise TimeRangeError("Invalid time range")

    def set_duration(self, value: int) -> None:
        if self.time_range is not None:
            raise ValidationError("Cannot modify duration of a planned block")
        if self.min_duration and value < self.min_duration:
            raise ValidationError(
                f"Duration {value} minutes is less than minimum duration of {self.min_duration} minutes"
            )
        if self.max_duration and value > self.max_duration:
            raise ValidationError(f"Duration {value} minutes exceeds maximum duration of {self.max_duration} minutes")
        self.duration_minutes = value

    @property
    def is_planned(self) -> bool:
        return self.time_range is not None

    @property
    def start_time(self) -> datetime:
        return self.require_time_range().start

    @property
    def end_time(self) -> datetime:
        return self.require_time_range().end

    @property
    def duration(self) -> float:
        """Duration in minutes: the range length when planned, else the explicit duration."""
        if self.time_range is not None:
            return max(1.0, self.time_range.minutes)
        if self.duration_minutes is None:
            raise MissingDurationError(f"Duration must be defined for unplanned block {self.label!r}")
        return float(self.duration_minutes)

    def has_constraint(self, constraint_type: str) -> bool:
        return any(c.type == constraint_type for c in self.constraints)

    def constraint_of(self, constraint_type: str) -> Optional[Constraint]:
        return next((c for c in self.constraints if c.type == constraint_type), None)

    @property
    def has_hard_constraints(self) -> bool:
        return any(is_hard_constraint(c) for c in self.constraints)

    @property
    def primary_constraint_type(self) -> Optional[str]:
        for constraint_type in HARD_CONSTRAINT_PRIORITY:
            if self.has_constraint(constraint_type):
                return constraint_type
        return self.constraints[0].type if self.constraints else None

    def require_time_range(self) -> TimeRange:
        if self.time_range is None:
            raise TimeRangeError(f"Time range not defined for block {self.label!r} (planned: {self.is_planned})")
        return self.time_range

    def plan(self, start: datetime, end: datetime) -> None:
        self.time_range = TimeRange(start, end)

    def plan_for(self, start: datetime, minutes: float) -> None:
        self.plan(start, start + timedelta(minutes=minutes))

    def unplan(self) -> None:
        self.time_range = None

    def mark_completed(self) -> None:
        self.is_completed = True

    def update_label(self, label: str) -> None:
        self.label = label

    def copy(self, **overrides: Any) -> "Block":
        """Return an independent block with a new identity."""
        overrides.setdefault("id", uuid4())
        overrides.setdefault("source_id", self.origin_id)
        overrides.setdefault("constraints", list(self.constraints))
        return replace(self, **overrides)

    @property
    def origin_id(self) -> UUID:
        return self.source_id or self.id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": str(self.id),
            "source_id": str(self.source_id) if self.source_id else None,
            "label": self.label,
            "category": self.category,
            "intensity": self.intensity,
            "energy_impact": self.energy_impact,
            "priority": self.priority,
            "user_order": self.user_order,
            "duration_minutes": self.duration_minutes,
            "min_duration": self.min_duration,
            "max_duration": self.max_duration,
            "is_completed": self.is_completed,
            "notes": self.notes,
            "constraints": [c.type for c in self.constraints],
            "start": self.time_range.start.isoformat() if self.time_range else None,
            "end": self.time_range.end.isoformat() if self.time_range else None,
        }


def start_key(block: Block) -> datetime:
    return block.start_time


def sort_by_start(blocks: List[Block], key: Callable[[Block], Any] = start_key) -> List[Block]:
    """Sort planned blocks by start time; unplanned blocks go last, in input order."""
    planned = sorted((b for b in blocks if b.is_planned), key=key)
    return planned + [b for b in blocks if not b.is_planned]


@dataclass(frozen=True)
class UserRhythm:
    """A planned day for one user. Produced once per plan call and never mutated."""

    user_id: UUID
    blocks: Tuple[Block, ...]
    id: UUID = field(default_factory=uuid4)
    complexity_level: Optional[str] = None
    fitness: Optional[float] = None
