"""Schemas for rhythm planning."""
from __future__ import annotations

from datetime import date, datetime, tzinfo
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from rhythm.planner.blocks import (
    AfterConstraint,
    Block,
    Constraint,
    DeadlineConstraint,
    DependsOnConstraint,
    FixedConstraint,
    NaturalLanguageConstraint,
    PreferredConstraint,
    RecurringConstraint,
    TimeRange,
    UserRhythm,
    WindowConstraint,
)


def _localize(value: datetime, tz: Optional[tzinfo]) -> datetime:
    """Attach the planner timezone to naive datetimes; aware ones are kept."""
    if value.tzinfo is None and tz is not None:
        return value.replace(tzinfo=tz)
    return value


def _mixed_offsets(first: datetime, second: datetime) -> bool:
    return (first.tzinfo is None) != (second.tzinfo is None)


class FixedConstraintPayload(BaseModel):
    type: Literal["fixed"] = "fixed"
    time: datetime

    def to_constraint(self, tz: Optional[tzinfo] = None) -> FixedConstraint:
        return FixedConstraint(time=_localize(self.time, tz))


class WindowConstraintPayload(BaseModel):
    type: Literal["window"] = "window"
    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "WindowConstraintPayload":
        if _mixed_offsets(self.start, self.end):
            raise ValueError("window start and end must both be naive or both carry an offset")
        if self.start >= self.end:
            raise ValueError("window start must be before window end")
        return self

    def to_constraint(self, tz: Optional[tzinfo] = None) -> WindowConstraint:
        return WindowConstraint(start=_localize(self.start, tz), end=_localize(self.end, tz))


class PreferredConstraintPayload(BaseModel):
    type: Literal["preferred"] = "preferred"
    time: datetime

    def to_constraint(self, tz: Optional[tzinfo] = None) -> PreferredConstraint:
        return PreferredConstraint(time=_localize(self.time, tz))


class DeadlineConstraintPayload(BaseModel):
    type: Literal["deadline"] = "deadline"
    latest_time: datetime

    def to_constraint(self, tz: Optional[tzinfo] = None) -> DeadlineConstraint:
        return DeadlineConstraint(latest_time=_localize(self.latest_time, tz))


class AfterConstraintPayload(BaseModel):
    type: Literal["after"] = "after"
    earliest_time: datetime

    def to_constraint(self, tz: Optional[tzinfo] = None) -> AfterConstraint:
        return AfterConstraint(earliest_time=_localize(self.earliest_time, tz))


class DependsOnConstraintPayload(BaseModel):
    type: Literal["dependsOn"] = "dependsOn"
    block_id: UUID

    def to_constraint(self, tz: Optional[tzinfo] = None) -> DependsOnConstraint:
        return DependsOnConstraint(block_id=self.block_id)


class RecurringConstraintPayload(BaseModel):
    type: Literal["recurring"] = "recurring"
    days: List[Annotated[int, Field(ge=0, le=6)]]
    time: datetime

    def to_constraint(self, tz: Optional[tzinfo] = None) -> RecurringConstraint:
        return RecurringConstraint(days=tuple(self.days), time=_localize(self.time, tz))


class NaturalLanguageConstraintPayload(BaseModel):
    type: Literal["naturalLanguage"] = "naturalLanguage"
    description: str

    def to_constraint(self, tz: Optional[tzinfo] = None) -> NaturalLanguageConstraint:
        return NaturalLanguageConstraint(description=self.description)


ConstraintPayload = Annotated[
    Union[
        FixedConstraintPayload,
        WindowConstraintPayload,
        PreferredConstraintPayload,
        DeadlineConstraintPayload,
        AfterConstraintPayload,
        DependsOnConstraintPayload,
        RecurringConstraintPayload,
        NaturalLanguageConstraintPayload,
    ],
    Field(discriminator="type"),
]


def constraint_payload(constraint: Constraint) -> Dict[str, Any]:
    """Plain dict form of a domain constraint, keyed like its payload model."""
    if isinstance(constraint, FixedConstraint):
        return {"type": "fixed", "time": constraint.time}
    if isinstance(constraint, WindowConstraint):
        return {"type": "window", "start": constraint.start, "end": constraint.end}
    if isinstance(constraint, PreferredConstraint):
        return {"type": "preferred", "time": constraint.time}
    if isinstance(constraint, DeadlineConstraint):
        return {"type": "deadline", "latest_time": constraint.latest_time}
    if isinstance(constraint, AfterConstraint):
        return {"type": "after", "earliest_time": constraint.earliest_time}
    if isinstance(constraint, DependsOnConstraint):
        return {"type": "dependsOn", "block_id": constraint.block_id}
    if isinstance(constraint, RecurringConstraint):
        return {"type": "recurring", "days": list(constraint.days), "time": constraint.time}
    return {"type": "naturalLanguage", "description": constraint.description}


class BlockPayload(BaseModel):
    id: Optional[UUID] = None
    source_id: Optional[UUID] = None
    label: str
    category: Literal["focus", "rest", "meal", "exercise", "break", "meeting", "hobby", "connect", "chore"]
    intensity: Literal["high", "medium", "low"]
    energy_impact: Literal["draining", "neutral", "recharging"]
    priority: Literal["essential", "important", "optional"]
    constraints: List[ConstraintPayload] = Field(default_factory=list)
    user_order: float = 0
    duration_minutes: Optional[int] = Field(default=None, ge=1)
    min_duration: Optional[int] = Field(default=None, ge=1)
    max_duration: Optional[int] = Field(default=None, ge=1)
    is_completed: Optional[bool] = None
    notes: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_time_range(self) -> "BlockPayload":
        if (self.start is None) != (self.end is None):
            raise ValueError("start and end must be provided together")
        if self.start is not None and self.end is not None:
            if _mixed_offsets(self.start, self.end):
                raise ValueError("start and end must both be naive or both carry an offset")
            if self.start >= self.end:
                raise ValueError("start must be before end")
        if self.min_duration and self.max_duration and self.min_duration > self.max_duration:
            raise ValueError("min_duration cannot exceed max_duration")
        return self

    def to_block(self, tz: Optional[tzinfo] = None) -> Block:
        identity: Dict[str, Any] = {"source_id": self.source_id}
        if self.id is not None:
            identity["id"] = self.id
        time_range = None
        if self.start is not None and self.end is not None:
            time_range = TimeRange(_localize(self.start, tz), _localize(self.end, tz))
        return Block(
            label=self.label,
            category=self.category,
            intensity=self.intensity,
            energy_impact=self.energy_impact,
            priority=self.priority,
            constraints=[constraint.to_constraint(tz) for constraint in self.constraints],
            user_order=self.user_order,
            duration_minutes=self.duration_minutes,
            min_duration=self.min_duration,
            max_duration=self.max_duration,
            is_completed=self.is_completed,
            notes=self.notes,
            time_range=time_range,
            **identity,
        )

    @classmethod
    def from_block(cls, block: Block) -> "BlockPayload":
        return cls.model_validate(
            {
                "id": block.id,
                "source_id": block.source_id,
                "label": block.label,
                "category": block.category,
                "intensity": block.intensity,
                "energy_impact": block.energy_impact,
                "priority": block.priority,
                "constraints": [constraint_payload(c) for c in block.constraints],
                "user_order": block.user_order,
                "duration_minutes": block.duration_minutes,
                "min_duration": block.min_duration,
                "max_duration": block.max_duration,
                "is_completed": block.is_completed,
                "notes": block.notes,
                "start": block.time_range.start if block.time_range else None,
                "end": block.time_range.end if block.time_range else None,
            }
        )


class PlanRhythmRequest(BaseModel):
    user_id: UUID
    day: Optional[date] = None
    blocks: List[BlockPayload] = Field(default_factory=list)


class RhythmResponse(BaseModel):
    id: UUID
    user_id: UUID
    complexity_level: Optional[str]
    fitness: Optional[float]
    blocks: List[BlockPayload]
    request_id: Optional[str] = None

    @classmethod
    def from_rhythm(cls, rhythm: UserRhythm, request_id: Optional[str] = None) -> "RhythmResponse":
        return cls(
            id=rhythm.id,
            user_id=rhythm.user_id,
            complexity_level=rhythm.complexity_level,
            fitness=rhythm.fitness,
            blocks=[BlockPayload.from_block(block) for block in rhythm.blocks],
            request_id=request_id,
        )


class RhythmErrorResponse(BaseModel):
    name: str
    message: str
    request_id: Optional[str] = None
