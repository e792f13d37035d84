"""Free-interval computation over a planning horizon."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List

from rhythm.planner.blocks import Block


@dataclass(frozen=True)
class Gap:
    start: datetime
    end: datetime

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


@dataclass
class FlowSession:
    """Horizon plus the blocks placed in it so far."""

    start_time: datetime
    end_time: datetime
    blocks: List[Block] = field(default_factory=list)


def find_gaps(horizon_start: datetime, horizon_end: datetime, blocks: Iterable[Block]) -> List[Gap]:
    """Return the free intervals of the horizon, in chronological order.

    Only planned blocks occupy time, and only the part of a block that falls
    inside the horizon counts. Gaps of zero length are never returned.
    """
    planned = sorted((b for b in blocks if b.is_planned), key=lambda b: b.start_time)

    gaps: List[Gap] = []
    # overlapping blocks: track the furthest end seen so far
    covered_until = horizon_start
    for block in planned:
        busy_start = max(block.start_time, horizon_start)
        busy_end = min(block.end_time, horizon_end)
        if busy_start >= busy_end:
            continue
        if covered_until < busy_start:
            gaps.append(Gap(covered_until, busy_start))
        covered_until = max(covered_until, busy_end)

    if covered_until < horizon_end:
        gaps.append(Gap(covered_until, horizon_end))
    return gaps


def session_gaps(session: FlowSession) -> List[Gap]:
    return find_gaps(session.start_time, session.end_time, session.blocks)
