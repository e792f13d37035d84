"""Flow generation strategies."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from rhythm.planner.blocks import Block, sort_by_start
from rhythm.planner.errors import MissingDurationError
from rhythm.planner.optimizer import FlowOptimizationCriteria, GeneticOptimizer, GeneticSettings, fitness_breakdown
from rhythm.planner.postprocess import BUFFER_MINUTES, post_process
from rhythm.planner.solver import FlowStateMachine
from rhythm.planner.views import HardView, to_placement_view, to_soft_view

module_logger = logging.getLogger(__name__)

STAGED_CONSTRAINTS = ("fixed", "window", "deadline")


@dataclass(frozen=True)
class FlowInput:
    start_time: datetime
    end_time: datetime
    blocks: Sequence[Block]


@dataclass(frozen=True)
class Flow:
    blocks: List[Block]
    fitness: Optional[float] = None


class FlowGenerator:
    """Base interface for flow generation strategies."""

    def generate(self, flow_input: FlowInput) -> Flow:
        raise NotImplementedError


class StagedFlowGenerator(FlowGenerator):
    """
    Hard constraints through the staged solver, soft constraints through
    genetic search, then buffers and validation.
    """

    def __init__(
        self,
        criteria: Optional[FlowOptimizationCriteria] = None,
        *,
        genetic_settings: Optional[GeneticSettings] = None,
        rng: Optional[random.Random] = None,
        buffer_minutes: int = BUFFER_MINUTES,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.criteria = criteria or FlowOptimizationCriteria()
        self.genetic_settings = genetic_settings or GeneticSettings()
        self.random = rng or random.Random()
        self.buffer_minutes = buffer_minutes
        self.logger = logger or module_logger

    def generate(self, flow_input: FlowInput) -> Flow:
        fsm = FlowStateMachine(flow_input.start_time, flow_input.end_time, logger=self.logger)
        hard_views, soft_blocks = self.separate_by_constraint(flow_input.blocks)

        fsm.process_fixed_blocks(hard_views["fixed"])
        fsm.process_window_blocks(hard_views["window"])
        fsm.process_deadline_blocks(hard_views["deadline"])
        snapshot = fsm.snapshot
        fsm.complete()

        optimizer = GeneticOptimizer(
            self.criteria,
            snapshot,
            settings=self.genetic_settings,
            rng=self.random,
            logger=self.logger,
        )
        merged = optimizer.execute(soft_blocks)
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug("Fitness breakdown: %s", fitness_breakdown(optimizer, merged))

        final = post_process(sort_by_start(merged), buffer_minutes=self.buffer_minutes, logger=self.logger)
        return Flow(blocks=final, fitness=optimizer.best_fitness)

    def separate_by_constraint(self, blocks: Sequence[Block]) -> Tuple[Dict[str, List[HardView]], List[Block]]:
        """Group hard blocks by primary constraint; soft blocks keep their order."""
        hard: Dict[str, List[HardView]] = {name: [] for name in STAGED_CONSTRAINTS}
        soft: List[Block] = []
        for block in blocks:
            if block.has_hard_constraints:
                view = to_placement_view(block)
                primary = block.primary_constraint_type
                if primary in hard:
                    hard[primary].append(view)
                else:
                    self.logger.warning(
                        "No placement stage for %s constraint; skipping block %r", primary, block.label
                    )
            elif to_soft_view(block) is not None:
                soft.append(block)
        return hard, soft


class TrivialFlowGenerator(FlowGenerator):
    """Stacks blocks back to back from the horizon start, without optimizing."""

    def __init__(self, fallback_duration: int = 60) -> None:
        self.fallback_duration = fallback_duration

    def generate(self, flow_input: FlowInput) -> Flow:
        current = flow_input.start_time
        planned: List[Block] = []
        for block in flow_input.blocks:
            try:
                minutes = block.duration
            except MissingDurationError:
                minutes = float(block.max_duration or self.fallback_duration)
            placed = block.copy(time_range=None)
            placed.plan_for(current, minutes)
            current = placed.end_time
            planned.append(placed)
        return Flow(blocks=planned)
