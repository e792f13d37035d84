"""Daily rhythm planning engine."""

from rhythm.planner.blocks import Block, TimeRange, UserRhythm
from rhythm.planner.errors import GenericServiceError, PlannerError
from rhythm.planner.planner import PlannerInput, RhythmPlanner, TrivialRhythmPlanner
from rhythm.planner.result import Result

__all__ = [
    "Block",
    "GenericServiceError",
    "PlannerError",
    "PlannerInput",
    "Result",
    "RhythmPlanner",
    "TimeRange",
    "TrivialRhythmPlanner",
    "UserRhythm",
]
