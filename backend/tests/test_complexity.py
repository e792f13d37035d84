from __future__ import annotations

from datetime import datetime, timedelta

from rhythm.planner.blocks import Block, FixedConstraint, PreferredConstraint
from rhythm.planner.complexity import ComplexityAnalyzer

NINE = datetime(2024, 3, 4, 9, 0)
ENERGY_CYCLE = ("draining", "recharging")


def _blocks(count: int, *, alternate_energy: bool = False, constraints_per_block: int = 1):
    blocks = []
    for index in range(count):
        constraints = [FixedConstraint(time=NINE + timedelta(hours=index))]
        constraints += [PreferredConstraint(time=NINE)] * (constraints_per_block - 1)
        blocks.append(
            Block(
                label=f"Block {index}",
                category="focus",
                intensity="medium",
                energy_impact=ENERGY_CYCLE[index % 2] if alternate_energy else "neutral",
                priority="important",
                constraints=constraints,
                duration_minutes=30,
            )
        )
    return blocks


def test_metrics_count_hard_soft_and_energy_transitions() -> None:
    result = ComplexityAnalyzer().analyze(_blocks(4, alternate_energy=True, constraints_per_block=2))

    assert result.metrics.hard_constraints == 4
    assert result.metrics.soft_constraints == 4
    assert result.metrics.total_constraints == 8
    assert result.metrics.energy_transitions == 3


def test_small_set_is_simple() -> None:
    result = ComplexityAnalyzer().analyze(_blocks(3))

    assert result.level == "simple"
    assert result.reason == "Low complexity - using simple pipeline"


def test_level_is_pinned_to_simple_without_tiers() -> None:
    result = ComplexityAnalyzer().analyze(_blocks(12, alternate_energy=True))

    assert result.level == "simple"
    assert result.reason == "High complexity - using optimization"


def test_tiered_analyzer_reports_moderate_and_complex() -> None:
    analyzer = ComplexityAnalyzer(tiered=True)

    assert analyzer.analyze(_blocks(12)).level == "moderate"
    assert analyzer.analyze(_blocks(30)).level == "complex"
    assert analyzer.analyze(_blocks(6, alternate_energy=True)).level == "moderate"
    assert analyzer.analyze(_blocks(10, alternate_energy=True)).level == "complex"


def test_empty_set_is_simple() -> None:
    result = ComplexityAnalyzer(tiered=True).analyze([])

    assert result.level == "simple"
    assert result.metrics.total_constraints == 0
