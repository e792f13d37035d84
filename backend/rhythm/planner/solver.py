"""Staged hard-constraint solver.

Blocks are placed in three forward-only stages: fixed, then window, then
deadline. Each stage runs exactly once and only right after the previous one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence

from rhythm.planner.blocks import Block, sort_by_start
from rhythm.planner.errors import FlowStateError, MissingDurationError
from rhythm.planner.gaps import FlowSession, Gap, find_gaps
from rhythm.planner.views import DeadlineView, FixedView, WindowView

module_logger = logging.getLogger(__name__)


class FlowStage(str, Enum):
    INITIAL = "initial"
    FIXED = "fixed"
    WINDOW = "window"
    DEADLINE = "deadline"
    COMPLETE = "complete"


# stage -> the only stage it may be entered from
_TRANSITIONS: Dict[FlowStage, FlowStage] = {
    FlowStage.FIXED: FlowStage.INITIAL,
    FlowStage.WINDOW: FlowStage.FIXED,
    FlowStage.DEADLINE: FlowStage.WINDOW,
    FlowStage.COMPLETE: FlowStage.DEADLINE,
}


@dataclass(frozen=True)
class Placement:
    start: datetime
    end: datetime


class FlowStateMachine:
    def __init__(
        self,
        start_time: datetime,
        end_time: datetime,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.stage = FlowStage.INITIAL
        self.logger = logger or module_logger
        self._session = FlowSession(start_time=start_time, end_time=end_time, blocks=[])

    @property
    def snapshot(self) -> FlowSession:
        """An independent copy of the current session."""
        return FlowSession(
            start_time=self._session.start_time,
            end_time=self._session.end_time,
            blocks=list(self._session.blocks),
        )

    def _advance(self, target: FlowStage, operation: str) -> None:
        expected = _TRANSITIONS[target]
        if self.stage is not expected:
            raise FlowStateError(
                f"{operation}() must be called when the flow is in the {expected.value!r} stage. "
                f"Current stage: {self.stage.value!r}"
            )
        self.stage = target

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def process_fixed_blocks(self, views: Sequence[FixedView]) -> "FlowStateMachine":
        self._advance(FlowStage.FIXED, "process_fixed_blocks")
        placed: List[Block] = []
        for view in views:
            placement = self._fixed_placement(view)
            if placement is None:
                continue
            block = _planned_copy(view.block, placement)
            clash = next((other for other in placed if _overlaps(other, block)), None)
            if clash is not None:
                self.logger.warning(
                    "Fixed block %r overlaps fixed block %r; keeping both", block.label, clash.label
                )
            placed.append(block)
        self._merge(placed, "fixed")
        return self

    def process_window_blocks(self, views: Sequence[WindowView]) -> "FlowStateMachine":
        self._advance(FlowStage.WINDOW, "process_window_blocks")
        placed: List[Block] = []
        for view in views:
            gaps = self._current_gaps(placed)
            self.logger.debug("Window block %r against %d gaps", view.block.label, len(gaps))
            placement = self._window_placement(view, gaps)
            if placement is None:
                self.logger.info("No gap fits window block %r", view.block.label)
                continue
            placed.append(_planned_copy(view.block, placement))
        self._merge(placed, "window")
        return self

    def process_deadline_blocks(self, views: Sequence[DeadlineView]) -> "FlowStateMachine":
        self._advance(FlowStage.DEADLINE, "process_deadline_blocks")
        placed: List[Block] = []
        for view in views:
            placement = self._deadline_placement(view, self._current_gaps(placed))
            if placement is None:
                self.logger.info("No gap meets deadline for block %r", view.block.label)
                continue
            placed.append(_planned_copy(view.block, placement))
        self._merge(placed, "deadline")
        return self

    def complete(self) -> List[Block]:
        self._advance(FlowStage.COMPLETE, "complete")
        return list(self._session.blocks)

    # ------------------------------------------------------------------
    # Placement rules
    # ------------------------------------------------------------------

    def _fixed_placement(self, view: FixedView) -> Optional[Placement]:
        try:
            minutes = view.block.duration
        except MissingDurationError:
            self.logger.warning(
                "Block %r has no defined duration, cannot place fixed block without duration", view.block.label
            )
            return None
        return Placement(view.fixed_start, view.fixed_start + timedelta(minutes=minutes))

    def _window_placement(self, view: WindowView, gaps: Sequence[Gap]) -> Optional[Placement]:
        block = view.block
        explicit = block.duration_minutes
        for gap in gaps:
            overlap_start = max(gap.start, view.window_start)
            overlap_end = min(gap.end, view.window_end)
            overlap = (overlap_end - overlap_start).total_seconds() / 60
            if overlap <= 0:
                continue

            minutes = _bounded_duration(block, explicit if explicit is not None else overlap)
            if minutes is None:
                self.logger.debug("Gap %s-%s too short for minimum of %r", gap.start, gap.end, block.label)
                continue
            if overlap >= minutes:
                return Placement(overlap_start, overlap_start + timedelta(minutes=minutes))
        return None

    def _deadline_placement(self, view: DeadlineView, gaps: Sequence[Gap]) -> Optional[Placement]:
        block = view.block
        explicit = block.duration_minutes
        for gap in gaps:
            minutes = _bounded_duration(block, explicit if explicit is not None else gap.minutes)
            if minutes is None:
                continue
            end = gap.start + timedelta(minutes=minutes)
            if end <= view.deadline and gap.minutes >= minutes:
                return Placement(gap.start, end)
        return None

    # ------------------------------------------------------------------

    def _current_gaps(self, pending: Sequence[Block]) -> List[Gap]:
        return find_gaps(self._session.start_time, self._session.end_time, [*self._session.blocks, *pending])

    def _merge(self, placed: List[Block], stage: str) -> None:
        self._session.blocks = sort_by_start([*self._session.blocks, *placed])
        self.logger.debug(
            "Stage %s placed %d blocks (%d total)", stage, len(placed), len(self._session.blocks)
        )


def _bounded_duration(block: Block, minutes: float) -> Optional[float]:
    """Clamp to the block's maximum; ``None`` when below its minimum."""
    if block.min_duration and minutes < block.min_duration:
        return None
    if block.max_duration and minutes > block.max_duration:
        return float(block.max_duration)
    return minutes


def _planned_copy(block: Block, placement: Placement) -> Block:
    planned = block.copy()
    planned.plan(placement.start, placement.end)
    return planned


def _overlaps(first: Block, second: Block) -> bool:
    return first.start_time < second.end_time and second.start_time < first.end_time
