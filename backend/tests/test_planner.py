from __future__ import annotations

import random
from datetime import date, datetime
from typing import List
from uuid import UUID, uuid4

import pytest

from rhythm.planner.blocks import (
    Block,
    FixedConstraint,
    NaturalLanguageConstraint,
    PreferredConstraint,
    WindowConstraint,
)
from rhythm.planner.errors import PlannerError, StrategyResolutionError, TimeRangeError, ValidationError
from rhythm.planner.generator import Flow, FlowGenerator, FlowInput, StagedFlowGenerator, TrivialFlowGenerator
from rhythm.planner.optimizer import GeneticSettings
from rhythm.planner.planner import PlannerInput, RhythmPlanner, TrivialRhythmPlanner
from rhythm.planner.time_window import DailyTimeWindow

DAY = date(2024, 3, 4)
USER_ID = UUID("7b0f8a64-5c1e-4c63-9d6b-2f4f3d2f8a10")


def _at(hour: int, minute: int = 0) -> datetime:
    return datetime.combine(DAY, datetime.min.time()).replace(hour=hour, minute=minute)


def _block(label: str, *constraints, **overrides) -> Block:
    fields = dict(
        label=label,
        category="chore",
        intensity="medium",
        energy_impact="neutral",
        priority="important",
        constraints=list(constraints),
        duration_minutes=30,
    )
    fields.update(overrides)
    return Block(**fields)


class _RecordingGenerator(FlowGenerator):
    """Plans every block back to back and remembers what it was given."""

    def __init__(self) -> None:
        self.inputs: List[FlowInput] = []

    def generate(self, flow_input: FlowInput) -> Flow:
        self.inputs.append(flow_input)
        return TrivialFlowGenerator().generate(flow_input)


class _UnplannedGenerator(FlowGenerator):
    def generate(self, flow_input: FlowInput) -> Flow:
        return Flow(blocks=list(flow_input.blocks))


class _BrokenGenerator(FlowGenerator):
    def generate(self, flow_input: FlowInput) -> Flow:
        raise TimeRangeError("Time range not defined for block 'x'")


def _planner(**kwargs) -> RhythmPlanner:
    return RhythmPlanner(DailyTimeWindow(DAY), **kwargs)


def _staged() -> StagedFlowGenerator:
    return StagedFlowGenerator(
        genetic_settings=GeneticSettings(population_size=10, generations=6), rng=random.Random(5)
    )


def test_blocks_without_label_or_constraints_never_reach_the_generator() -> None:
    generator = _RecordingGenerator()
    keep = _block("Stretch", PreferredConstraint(time=_at(8)))
    unlabeled = _block("   ", PreferredConstraint(time=_at(8)))
    unconstrained = _block("Nap")

    result = _planner(generators={"simple": generator}).plan(USER_ID, [unlabeled, keep, unconstrained])

    assert result.is_success
    assert [block.label for block in generator.inputs[0].blocks] == ["Stretch"]
    assert [block.label for block in result.value.blocks] == ["Stretch"]


def test_preprocess_orders_by_priority_then_user_order() -> None:
    blocks = [
        _block("Optional", PreferredConstraint(time=_at(8)), priority="optional", user_order=0),
        _block("Important late", PreferredConstraint(time=_at(8)), priority="important", user_order=5),
        _block("Essential", PreferredConstraint(time=_at(8)), priority="essential", user_order=9),
        _block("Important early", PreferredConstraint(time=_at(8)), priority="important", user_order=1),
    ]

    ordered = RhythmPlanner.preprocess(blocks)

    assert [block.label for block in ordered] == ["Essential", "Important early", "Important late", "Optional"]


def test_already_planned_input_is_rejected_before_processing() -> None:
    generator = _RecordingGenerator()
    planned = _block("Standup", FixedConstraint(time=_at(9)))
    planned.plan_for(_at(9), 15)

    with pytest.raises(ValidationError):
        _planner(generators={"simple": generator}).plan(USER_ID, [planned])
    assert generator.inputs == []


def test_unplanned_generator_output_violates_postcondition() -> None:
    with pytest.raises(ValidationError):
        _planner(generators={"simple": _UnplannedGenerator()}).plan(
            USER_ID, [_block("Walk", PreferredConstraint(time=_at(8)))]
        )


def test_missing_generator_is_a_typed_failure() -> None:
    result = _planner(generators={}).plan(USER_ID, [_block("Walk", PreferredConstraint(time=_at(8)))])

    assert result.is_failure
    assert isinstance(result.error, StrategyResolutionError)


def test_engine_errors_become_planner_failures() -> None:
    result = _planner(generators={"simple": _BrokenGenerator()}).plan(
        USER_ID, [_block("Walk", PreferredConstraint(time=_at(8)))]
    )

    assert result.is_failure
    assert isinstance(result.error, PlannerError)
    assert isinstance(result.error.__cause__, TimeRangeError)


def test_staged_plan_places_every_block_and_honours_fixed_times() -> None:
    standup = _block("Standup", FixedConstraint(time=_at(9)), category="meeting", duration_minutes=15)
    deep_work = _block(
        "Deep work",
        WindowConstraint(start=_at(9), end=_at(12)),
        category="focus",
        priority="essential",
        duration_minutes=90,
    )
    walk = _block("Walk", PreferredConstraint(time=_at(16)), category="exercise", priority="optional")
    journal = _block("Journal", NaturalLanguageConstraint(description="before bed"), priority="optional")
    ids = iter([UUID(int=1)])

    result = _planner(generators={"simple": _staged()}, id_factory=lambda: next(ids)).plan(
        USER_ID, [standup, deep_work, walk, journal]
    )

    assert result.is_success
    rhythm = result.value
    assert rhythm.id == UUID(int=1)
    assert rhythm.user_id == USER_ID
    assert rhythm.complexity_level == "simple"
    assert rhythm.fitness is not None
    assert all(block.is_planned for block in rhythm.blocks)
    starts = [block.start_time for block in rhythm.blocks]
    assert starts == sorted(starts)

    placed = {block.label: block for block in rhythm.blocks}
    assert {"Standup", "Deep work", "Walk", "Journal"} <= set(placed)
    assert (placed["Standup"].start_time, placed["Standup"].end_time) == (_at(9), _at(9, 15))
    assert placed["Deep work"].start_time >= _at(9)
    assert placed["Deep work"].end_time <= _at(12)
    assert all(not block.is_planned for block in (standup, deep_work, walk, journal))


def test_plan_input_and_back_to_rhythm() -> None:
    planner = _planner(generators={"simple": _RecordingGenerator()})

    planner_input = PlannerInput(user_id=USER_ID, blocks=[_block("Walk", PreferredConstraint(time=_at(8)))])

    result = planner.plan_input(planner_input)

    assert result.is_success
    assert planner.back_to_rhythm(result.value) is result.value


def test_trivial_planner_stacks_labelled_blocks_from_window_start() -> None:
    blocks = [
        _block("Dishes", duration_minutes=20),
        _block("", duration_minutes=20),
        _block("Laundry", duration_minutes=None, max_duration=40),
    ]

    result = TrivialRhythmPlanner(DailyTimeWindow(DAY)).plan(uuid4(), blocks)

    assert result.is_success
    assert [(b.label, b.start_time, b.end_time) for b in result.value.blocks] == [
        ("Dishes", _at(7), _at(7, 20)),
        ("Laundry", _at(7, 20), _at(8)),
    ]
    assert result.value.fitness is None


def test_empty_plan_succeeds_with_no_blocks() -> None:
    result = _planner(generators={"simple": _staged()}).plan(USER_ID, [])

    assert result.is_success
    assert result.value.blocks == ()
