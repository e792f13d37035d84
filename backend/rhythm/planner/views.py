"""Typed placement views over blocks.

A view pairs a block with the payload of the single constraint that drives
its placement, so solver stages never have to search constraint lists.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union
from uuid import UUID

from rhythm.planner.blocks import Block
from rhythm.planner.errors import ConstraintAssertionError


@dataclass(frozen=True)
class FixedView:
    block: Block
    fixed_start: datetime


@dataclass(frozen=True)
class WindowView:
    block: Block
    window_start: datetime
    window_end: datetime


@dataclass(frozen=True)
class DeadlineView:
    block: Block
    deadline: datetime


@dataclass(frozen=True)
class AfterView:
    block: Block
    earliest_time: datetime


@dataclass(frozen=True)
class DependsOnView:
    block: Block
    dependency_id: UUID


@dataclass(frozen=True)
class RecurringView:
    block: Block
    days: Tuple[int, ...]
    time: datetime


@dataclass(frozen=True)
class PreferredView:
    block: Block
    preferred_time: datetime


@dataclass(frozen=True)
class NaturalLanguageView:
    block: Block
    description: str


HardView = Union[FixedView, WindowView, DeadlineView, AfterView, DependsOnView, RecurringView]
SoftView = Union[PreferredView, NaturalLanguageView]


def _require(block: Block, constraint_type: str):
    constraint = block.constraint_of(constraint_type)
    if constraint is None:
        raise ConstraintAssertionError(f"Block {block.label!r} must have a {constraint_type} constraint")
    return constraint


def view_for(block: Block, constraint_type: str) -> Union[HardView, SoftView]:
    """Build the view for ``constraint_type``; the block must carry that constraint."""
    constraint = _require(block, constraint_type)
    if constraint_type == "fixed":
        return FixedView(block, constraint.time)
    if constraint_type == "window":
        return WindowView(block, constraint.start, constraint.end)
    if constraint_type == "deadline":
        return DeadlineView(block, constraint.latest_time)
    if constraint_type == "after":
        return AfterView(block, constraint.earliest_time)
    if constraint_type == "dependsOn":
        return DependsOnView(block, constraint.block_id)
    if constraint_type == "recurring":
        return RecurringView(block, tuple(constraint.days), constraint.time)
    if constraint_type == "preferred":
        return PreferredView(block, constraint.time)
    return NaturalLanguageView(block, constraint.description)


def to_placement_view(block: Block) -> HardView:
    """Return the view for the block's primary hard constraint."""
    if not block.has_hard_constraints:
        raise ConstraintAssertionError(f"Block {block.label!r} has no hard constraint")
    return view_for(block, block.primary_constraint_type)


def to_soft_view(block: Block) -> Optional[SoftView]:
    """Preferred-time beats free text; blocks with neither yield ``None``."""
    if block.has_constraint("preferred"):
        return view_for(block, "preferred")
    if block.has_constraint("naturalLanguage"):
        return view_for(block, "naturalLanguage")
    return None
