from __future__ import annotations

import logging
import random
from datetime import datetime

from rhythm.planner.blocks import (
    AfterConstraint,
    Block,
    DeadlineConstraint,
    FixedConstraint,
    NaturalLanguageConstraint,
    PreferredConstraint,
    WindowConstraint,
)
from rhythm.planner.generator import FlowInput, StagedFlowGenerator
from rhythm.planner.optimizer import GeneticSettings
from rhythm.planner.views import DeadlineView, FixedView, WindowView

DAY = datetime(2024, 3, 4)


def _at(hour: int, minute: int = 0) -> datetime:
    return DAY.replace(hour=hour, minute=minute)


def _block(label: str, *constraints, **overrides) -> Block:
    fields = dict(
        label=label,
        category="chore",
        intensity="low",
        energy_impact="neutral",
        priority="important",
        constraints=list(constraints),
        duration_minutes=30,
    )
    fields.update(overrides)
    return Block(**fields)


def _generator() -> StagedFlowGenerator:
    return StagedFlowGenerator(
        genetic_settings=GeneticSettings(population_size=8, generations=4), rng=random.Random(3)
    )


def test_separate_by_constraint_groups_hard_blocks_by_stage(caplog) -> None:
    fixed = _block("Standup", FixedConstraint(time=_at(9)), PreferredConstraint(time=_at(10)))
    window = _block("Email", WindowConstraint(start=_at(10), end=_at(11)))
    deadline = _block("Report", DeadlineConstraint(latest_time=_at(17)))
    after = _block("Call mom", AfterConstraint(earliest_time=_at(18)))
    soft = _block("Walk", NaturalLanguageConstraint(description="outside"))

    with caplog.at_level(logging.WARNING):
        hard, soft_blocks = _generator().separate_by_constraint([fixed, window, deadline, after, soft])

    assert [type(view) for view in hard["fixed"]] == [FixedView]
    assert [type(view) for view in hard["window"]] == [WindowView]
    assert [type(view) for view in hard["deadline"]] == [DeadlineView]
    assert soft_blocks == [soft]
    assert "Call mom" in caplog.text


def test_generate_merges_hard_and_soft_placements() -> None:
    blocks = [
        _block("Standup", FixedConstraint(time=_at(9)), duration_minutes=15),
        _block("Email", WindowConstraint(start=_at(10), end=_at(11))),
        _block("Walk", PreferredConstraint(time=_at(15))),
    ]

    flow = _generator().generate(FlowInput(start_time=_at(7), end_time=_at(23), blocks=blocks))

    assert sorted(block.label for block in flow.blocks) == ["Email", "Standup", "Walk"]
    placed = {block.label: block for block in flow.blocks}
    assert placed["Email"].start_time == _at(10)
    assert placed["Standup"].start_time == _at(9)
    assert flow.fitness is not None
