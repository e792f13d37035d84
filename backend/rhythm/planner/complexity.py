"""Complexity classification of a block set."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from rhythm.planner.blocks import Block, is_hard_constraint

ComplexityLevel = Literal["simple", "moderate", "complex"]

SIMPLE_MAX_CONSTRAINTS = 10
SIMPLE_MAX_TRANSITIONS = 3
MODERATE_MAX_CONSTRAINTS = 25
MODERATE_MAX_TRANSITIONS = 8


@dataclass(frozen=True)
class ComplexityMetrics:
    hard_constraints: int
    soft_constraints: int
    total_constraints: int
    energy_transitions: int


@dataclass(frozen=True)
class Complexity:
    level: ComplexityLevel
    reason: str
    metrics: ComplexityMetrics


class ComplexityAnalyzer:
    """Scores a block set to pick a generation strategy.

    With ``tiered=False`` every block set is reported as ``simple`` (only the
    staged pipeline exists); the reason still reflects the metrics.
    """

    def __init__(self, *, tiered: bool = False) -> None:
        self.tiered = tiered

    def analyze(self, blocks: Sequence[Block]) -> Complexity:
        hard = 0
        soft = 0
        for block in blocks:
            for constraint in block.constraints:
                if is_hard_constraint(constraint):
                    hard += 1
                else:
                    soft += 1

        transitions = sum(
            1 for current, following in zip(blocks, blocks[1:]) if current.energy_impact != following.energy_impact
        )
        total = hard + soft
        metrics = ComplexityMetrics(
            hard_constraints=hard,
            soft_constraints=soft,
            total_constraints=total,
            energy_transitions=transitions,
        )

        is_simple = total < SIMPLE_MAX_CONSTRAINTS and transitions < SIMPLE_MAX_TRANSITIONS
        reason = (
            "Low complexity - using simple pipeline" if is_simple else "High complexity - using optimization"
        )
        return Complexity(level=self._level(metrics, is_simple), reason=reason, metrics=metrics)

    def _level(self, metrics: ComplexityMetrics, is_simple: bool) -> ComplexityLevel:
        if not self.tiered or is_simple:
            return "simple"
        if (
            metrics.total_constraints < MODERATE_MAX_CONSTRAINTS
            and metrics.energy_transitions < MODERATE_MAX_TRANSITIONS
        ):
            return "moderate"
        return "complex"
