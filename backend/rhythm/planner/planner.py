"""Rhythm planner orchestrating classification, generation and validation."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from rhythm.planner.blocks import PRIORITY_RANK, Block, UserRhythm
from rhythm.planner.complexity import ComplexityAnalyzer
from rhythm.planner.errors import (
    ConstraintAssertionError,
    MissingDurationError,
    PlannerError,
    StrategyResolutionError,
    TimeRangeError,
    require,
)
from rhythm.planner.generator import FlowGenerator, FlowInput, StagedFlowGenerator, TrivialFlowGenerator
from rhythm.planner.result import Result
from rhythm.planner.time_window import TimeWindowProvider

module_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannerInput:
    user_id: UUID
    blocks: Sequence[Block]


class RhythmPlanner:
    """
    Plans a day of blocks for one user.

    Blocks without a label or without constraints are ignored. The remaining
    ones are ordered by priority then user order, classified, and handed to
    the generator registered for their complexity level.
    """

    def __init__(
        self,
        time_window: TimeWindowProvider,
        *,
        generators: Optional[Dict[str, FlowGenerator]] = None,
        analyzer: Optional[ComplexityAnalyzer] = None,
        id_factory: Callable[[], UUID] = uuid4,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.time_window = time_window
        self.logger = logger or module_logger
        self.generators = generators if generators is not None else {"simple": StagedFlowGenerator(logger=self.logger)}
        self.analyzer = analyzer or ComplexityAnalyzer()
        self.id_factory = id_factory

    def plan(self, user_id: UUID, blocks: Sequence[Block]) -> Result[UserRhythm, PlannerError]:
        require(not any(block.is_planned for block in blocks), "Some blocks are already planned")

        prepared = self.preprocess(blocks)
        complexity = self.analyzer.analyze(prepared)
        start, end = self.time_window.start_time(), self.time_window.end_time()
        self.logger.debug(
            "Starting rhythm planning: %d blocks (%d valid), window %s - %s, complexity %s (%s)",
            len(blocks),
            len(prepared),
            start,
            end,
            complexity.level,
            complexity.reason,
        )

        generator = self.generators.get(complexity.level)
        if generator is None:
            return Result.failure(
                StrategyResolutionError(f"No flow generator registered for complexity level {complexity.level!r}")
            )

        try:
            flow = generator.generate(FlowInput(start_time=start, end_time=end, blocks=prepared))
        except PlannerError as exc:
            return Result.failure(exc)
        except (TimeRangeError, MissingDurationError, ConstraintAssertionError) as exc:
            error = PlannerError(f"{type(exc).__name__}: {exc}")
            error.__cause__ = exc
            return Result.failure(error)

        require(all(block.is_planned for block in flow.blocks), "Not all blocks are planned")

        rhythm = UserRhythm(
            id=self.id_factory(),
            user_id=user_id,
            blocks=tuple(flow.blocks),
            complexity_level=complexity.level,
            fitness=flow.fitness,
        )
        self.logger.info("Rhythm planned for user %s: %d blocks", user_id, len(rhythm.blocks))
        return Result.success(rhythm)

    def plan_input(self, planner_input: PlannerInput) -> Result[UserRhythm, PlannerError]:
        return self.plan(planner_input.user_id, planner_input.blocks)

    def back_to_rhythm(self, old_rhythm: UserRhythm) -> UserRhythm:
        return old_rhythm

    @staticmethod
    def preprocess(blocks: Sequence[Block]) -> List[Block]:
        valid = [block for block in blocks if block.label.strip() and block.constraints]
        return sorted(valid, key=lambda block: (PRIORITY_RANK[block.priority], block.user_order))


class TrivialRhythmPlanner(RhythmPlanner):
    """Planner without optimization, used as a fallback."""

    def __init__(self, time_window: TimeWindowProvider, **kwargs) -> None:
        kwargs.setdefault("generators", {"simple": TrivialFlowGenerator()})
        super().__init__(time_window, **kwargs)

    @staticmethod
    def preprocess(blocks: Sequence[Block]) -> List[Block]:
        return [block for block in blocks if block.label.strip()]
