"""Genetic search over soft-constrained block orderings."""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Set
from uuid import UUID

from rhythm.planner.blocks import PRIORITY_RANK, Block, Constraint, sort_by_start
from rhythm.planner.errors import MissingDurationError
from rhythm.planner.gaps import FlowSession, find_gaps

module_logger = logging.getLogger(__name__)

Candidate = List[Block]

FIXED_TOLERANCE_SECONDS = 60


@dataclass(frozen=True)
class FlowOptimizationCriteria:
    """Weights of the fitness terms (each term scores 0-1)."""

    constraint_satisfaction: float = 0.30
    energy_flow_optimization: float = 0.25
    priority_alignment: float = 0.20
    user_preference_alignment: float = 0.15
    transition_smoothness: float = 0.10
    buffer_time_optimization: float = 0.05
    deadline_compliance: float = 0.05


@dataclass(frozen=True)
class GeneticSettings:
    population_size: int = 50
    generations: int = 100
    mutation_rate: float = 0.1
    tournament_size: int = 3
    fallback_duration: int = 60
    # When set, only soft blocks are re-timed; hard placements never move.
    preserve_hard_placements: bool = True


class EnergyFlowModel:
    """Scores the energy transition between two consecutive blocks."""

    ENERGY = {"draining": -1, "neutral": 0, "recharging": 1}

    def transition_score(self, previous: Block, following: Block, gap_minutes: int) -> float:
        before = self.ENERGY[previous.energy_impact]
        after = self.ENERGY[following.energy_impact]

        score = 0.5
        if before == -1 and after == 1:
            score = 1.0
        elif abs(before - after) == 1:
            score = 0.8
        elif before == 1 and after == -1:
            score = 0.2

        if before == -1:
            if gap_minutes >= 30:
                score = min(1.0, score + 0.2)
            elif gap_minutes >= 15:
                score = min(1.0, score + 0.1)
            elif gap_minutes < 5:
                score = max(0.1, score - 0.3)

        if before >= 0 and gap_minutes < 5:
            score = max(0.1, score - 0.1)
        return score


class TransitionModel:
    """Scores how smoothly one activity leads into the next."""

    COMPATIBLE_CATEGORIES = (
        ("focus", "break"),
        ("exercise", "rest"),
        ("meal", "connect"),
        ("meeting", "focus"),
        ("hobby", "rest"),
    )
    INTENSITY = {"high": 3, "medium": 2, "low": 1}

    def smoothness_score(self, current: Block, following: Block) -> float:
        category = self.category_compatibility(current.category, following.category)
        intensity = self.intensity_compatibility(current.intensity, following.intensity)
        return (category + intensity) / 2

    def category_compatibility(self, first: str, second: str) -> float:
        for a, b in self.COMPATIBLE_CATEGORIES:
            if (first, second) in ((a, b), (b, a)):
                return 1.0
        return 0.5

    def intensity_compatibility(self, first: str, second: str) -> float:
        diff = abs(self.INTENSITY[first] - self.INTENSITY[second])
        if diff == 0:
            return 0.7
        if diff == 1:
            return 1.0
        return 0.3


def minutes_between(earlier: Block, later: Block) -> int:
    """Whole minutes from the end of ``earlier`` to the start of ``later``."""
    return int((later.start_time - earlier.end_time).total_seconds() / 60)


def is_constraint_satisfied(block: Block, constraint: Constraint) -> bool:
    if not block.is_planned:
        return False
    if constraint.type == "fixed":
        return abs((block.start_time - constraint.time).total_seconds()) < FIXED_TOLERANCE_SECONDS
    if constraint.type == "window":
        return block.start_time >= constraint.start and block.end_time <= constraint.end
    if constraint.type == "deadline":
        return block.end_time <= constraint.latest_time
    if constraint.type == "after":
        return block.start_time >= constraint.earliest_time
    return True


class GeneticOptimizer:
    """
    Places soft-constrained blocks around a fixed snapshot of hard placements.

    Candidates are time-ordered block lists (hard snapshot + soft blocks).
    Each generation runs tournament selection, midpoint crossover and swap
    mutation; the fittest candidate of the last generation wins.
    """

    def __init__(
        self,
        criteria: FlowOptimizationCriteria,
        snapshot: FlowSession,
        *,
        settings: Optional[GeneticSettings] = None,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.criteria = criteria
        self.snapshot = snapshot
        self.settings = settings or GeneticSettings()
        self.random = rng or random.Random()
        self.logger = logger or module_logger
        self.energy_model = EnergyFlowModel()
        self.transition_model = TransitionModel()
        self.best_fitness: Optional[float] = None
        self._hard_ids: Set[UUID] = {block.id for block in snapshot.blocks}
        self._soft: List[Block] = []

    def execute(self, blocks: Sequence[Block]) -> List[Block]:
        """Return the fittest flow (hard snapshot plus placed soft blocks)."""
        self._soft = list(blocks)
        if not self._soft:
            self.best_fitness = self.fitness(list(self.snapshot.blocks))
            return list(self.snapshot.blocks)

        self.logger.debug("Starting genetic search for %d soft blocks", len(self._soft))
        population = self.initialize_population()
        for generation in range(self.settings.generations):
            scores = [self.fitness(candidate) for candidate in population]
            parents = self.select_parents(population, scores)
            population = self.mutate(self.crossover(parents))
            self.logger.debug("Generation %d: best fitness = %.4f", generation, max(scores))

        scores = [self.fitness(candidate) for candidate in population]
        best_index = max(range(len(population)), key=scores.__getitem__)
        self.best_fitness = scores[best_index]
        return self._finalize(population[best_index])

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def initialize_population(self) -> List[Candidate]:
        population: List[Candidate] = []
        for _ in range(self.settings.population_size):
            shuffled = list(self._soft)
            self.random.shuffle(shuffled)
            candidate: Candidate = list(self.snapshot.blocks)
            for block in shuffled:
                candidate.append(self._place_in_first_gap(candidate, block))
            population.append(sort_by_start(candidate))
        return population

    def select_parents(self, population: List[Candidate], scores: List[float]) -> List[Candidate]:
        selected: List[Candidate] = []
        for _ in range(len(population)):
            best = self.random.randrange(len(population))
            for _ in range(1, self.settings.tournament_size):
                challenger = self.random.randrange(len(population))
                if scores[challenger] > scores[best]:
                    best = challenger
            selected.append(population[best])
        return selected

    def crossover(self, parents: List[Candidate]) -> List[Candidate]:
        offspring: List[Candidate] = []
        for index in range(0, len(parents), 2):
            if index + 1 >= len(parents):
                offspring.append(parents[index])
                continue
            first, second = parents[index], parents[index + 1]
            point = len(first) // 2
            for child in (first[:point] + second[point:], second[:point] + first[point:]):
                if self.settings.preserve_hard_placements:
                    offspring.append(self._retime(child))
                else:
                    offspring.append(self._restack(self._complete(child)))
        return offspring

    def mutate(self, offspring: List[Candidate]) -> List[Candidate]:
        return [
            self.mutate_flow(flow) if self.random.random() < self.settings.mutation_rate else flow
            for flow in offspring
        ]

    def mutate_flow(self, flow: Candidate) -> Candidate:
        mutated = list(flow)
        if len(mutated) < 2:
            return mutated
        i = self.random.randrange(len(mutated))
        j = self.random.randrange(len(mutated))
        if i == j:
            return mutated
        mutated[i], mutated[j] = mutated[j], mutated[i]
        if self.settings.preserve_hard_placements:
            return self._retime(mutated)
        return self._restack(mutated)

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    def _duration(self, block: Block) -> float:
        try:
            return block.duration
        except MissingDurationError:
            return float(block.max_duration or self.settings.fallback_duration)

    def _place_in_first_gap(self, candidate: Candidate, block: Block) -> Block:
        """Planned copy of ``block`` in the first gap it fits, else ``block`` unchanged."""
        minutes = self._duration(block)
        for gap in find_gaps(self.snapshot.start_time, self.snapshot.end_time, candidate):
            if gap.minutes >= minutes:
                placed = block.copy(time_range=None)
                placed.plan_for(gap.start, minutes)
                return placed
        return block

    def _retime(self, flow: Candidate) -> Candidate:
        """Re-place soft blocks in ``flow`` order around the untouched hard snapshot."""
        order: List[Block] = []
        seen: Set[UUID] = set()
        for block in flow:
            if block.id in self._hard_ids or block.origin_id in seen:
                continue
            seen.add(block.origin_id)
            order.append(block)
        order.extend(block for block in self._soft if block.origin_id not in seen)

        candidate: Candidate = list(self.snapshot.blocks)
        for block in order:
            candidate.append(self._place_in_first_gap(candidate, block))
        return sort_by_start(candidate)

    def _complete(self, flow: Candidate) -> Candidate:
        """Keep the first copy of each block in ``flow`` and append any that went missing."""
        kept: Candidate = []
        seen: Set[UUID] = set()
        for block in flow:
            if block.origin_id in seen:
                continue
            seen.add(block.origin_id)
            kept.append(block)
        kept.extend(block for block in [*self.snapshot.blocks, *self._soft] if block.origin_id not in seen)
        return kept

    def _restack(self, flow: Candidate) -> Candidate:
        """Lay every block back to back from the horizon start."""
        current = self.snapshot.start_time
        restacked: Candidate = []
        for block in flow:
            minutes = self._duration(block)
            moved = block.copy(time_range=None)
            moved.plan(current, current + timedelta(minutes=minutes))
            current = moved.end_time
            restacked.append(moved)
        return restacked

    def _finalize(self, flow: Candidate) -> List[Block]:
        planned: List[Block] = []
        for block in flow:
            if not block.is_planned:
                self.logger.warning("Soft block %r could not be placed; leaving it out", block.label)
                continue
            block.require_time_range()
            planned.append(block)
        self.logger.info("Genetic search finished with %d blocks (fitness %.4f)", len(planned), self.best_fitness)
        return planned

    # ------------------------------------------------------------------
    # Fitness
    # ------------------------------------------------------------------

    def fitness(self, flow: Candidate) -> float:
        c = self.criteria
        return (
            c.constraint_satisfaction * self.constraint_score(flow)
            + c.energy_flow_optimization * self.energy_score(flow)
            + c.priority_alignment * self.priority_score(flow)
            + c.transition_smoothness * self.transition_score(flow)
            + c.buffer_time_optimization * self.buffer_score(flow)
            + c.user_preference_alignment * self.user_preference_score(flow)
            + c.deadline_compliance * self.deadline_score(flow)
        )

    def constraint_score(self, flow: Candidate) -> float:
        outcomes = [is_constraint_satisfied(block, constraint) for block in flow for constraint in block.constraints]
        return sum(outcomes) / len(outcomes) if outcomes else 1.0

    def deadline_score(self, flow: Candidate) -> float:
        outcomes = [
            is_constraint_satisfied(block, constraint)
            for block in flow
            for constraint in block.constraints
            if constraint.type == "deadline"
        ]
        return sum(outcomes) / len(outcomes) if outcomes else 1.0

    def energy_score(self, flow: Candidate) -> float:
        planned = [block for block in flow if block.is_planned]
        if len(planned) < 2:
            return 1.0
        total = sum(
            self.energy_model.transition_score(current, following, minutes_between(current, following))
            for current, following in zip(planned, planned[1:])
        )
        return total / (len(planned) - 1)

    def priority_score(self, flow: Candidate) -> float:
        if not flow:
            return 1.0
        total = 0.0
        for index, block in enumerate(flow):
            position = index / len(flow)
            ideal = (PRIORITY_RANK[block.priority] - 1) / 2
            total += 1 - abs(position - ideal)
        return total / len(flow)

    def transition_score(self, flow: Candidate) -> float:
        planned = [block for block in flow if block.is_planned]
        if len(planned) < 2:
            return 1.0
        total = sum(
            self.transition_model.smoothness_score(current, following)
            for current, following in zip(planned, planned[1:])
        )
        return total / (len(planned) - 1)

    def buffer_score(self, flow: Candidate) -> float:
        planned = [block for block in flow if block.is_planned]
        if len(planned) < 2:
            return 1.0
        total = 0.0
        for current, following in zip(planned, planned[1:]):
            gap = minutes_between(current, following)
            if 5 <= gap <= 15:
                total += 1.0
            elif 0 < gap < 30:
                total += 0.5
        return total / (len(planned) - 1)

    def user_preference_score(self, flow: Candidate) -> float:
        if not flow:
            return 1.0
        total = sum(1 / (1 + abs(index - block.user_order)) for index, block in enumerate(flow))
        return total / len(flow)


def fitness_breakdown(optimizer: GeneticOptimizer, flow: Candidate) -> Dict[str, float]:
    """Per-criterion scores for a flow, keyed like ``FlowOptimizationCriteria``."""
    return {
        "constraint_satisfaction": optimizer.constraint_score(flow),
        "energy_flow_optimization": optimizer.energy_score(flow),
        "priority_alignment": optimizer.priority_score(flow),
        "user_preference_alignment": optimizer.user_preference_score(flow),
        "transition_smoothness": optimizer.transition_score(flow),
        "buffer_time_optimization": optimizer.buffer_score(flow),
        "deadline_compliance": optimizer.deadline_score(flow),
    }
