"""Final adjustments applied to a merged flow: buffers, validation, ordering."""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import List, Optional, Sequence

from rhythm.planner.blocks import Block

module_logger = logging.getLogger(__name__)

BUFFER_MINUTES = 10
INCOMPATIBLE_CATEGORIES = (
    ("focus", "meeting"),
    ("exercise", "meal"),
    ("meeting", "exercise"),
)


def needs_buffer(first: Block, second: Block) -> bool:
    if first.intensity == "high" and second.intensity == "high":
        return True
    if first.energy_impact == "draining" and second.energy_impact == "draining":
        return True
    pair = (first.category, second.category)
    return any(pair in ((a, b), (b, a)) for a, b in INCOMPATIBLE_CATEGORIES)


def create_buffer_block(first: Block, second: Block, minutes: int = BUFFER_MINUTES) -> Block:
    buffer = Block(
        label="Buffer",
        category="break",
        intensity="low",
        energy_impact="neutral",
        priority="optional",
        constraints=[],
        user_order=(first.user_order + second.user_order) / 2,
    )
    start = first.end_time
    buffer.plan(start, start + timedelta(minutes=minutes))
    return buffer


def add_buffer_times(blocks: Sequence[Block], minutes: int = BUFFER_MINUTES) -> List[Block]:
    result: List[Block] = []
    for index, block in enumerate(blocks):
        result.append(block)
        if index + 1 < len(blocks) and block.is_planned and needs_buffer(block, blocks[index + 1]):
            result.append(create_buffer_block(block, blocks[index + 1], minutes))
    return result


def is_valid_scheduled_block(block: Block) -> bool:
    return block.is_planned and block.start_time < block.end_time


def validate_final_flow(blocks: Sequence[Block], logger: Optional[logging.Logger] = None) -> List[Block]:
    logger = logger or module_logger
    valid: List[Block] = []
    for block in blocks:
        if is_valid_scheduled_block(block):
            valid.append(block)
        else:
            logger.warning("Removing invalid block: %s", block.label)
    return valid


def post_process(
    blocks: Sequence[Block],
    *,
    buffer_minutes: int = BUFFER_MINUTES,
    logger: Optional[logging.Logger] = None,
) -> List[Block]:
    """Insert buffers between incompatible neighbours, drop invalid blocks, sort by start."""
    buffered = add_buffer_times(blocks, buffer_minutes)
    validated = validate_final_flow(buffered, logger)
    return sorted(validated, key=lambda block: block.start_time)
