"""Rhythm repository interface."""
from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from rhythm.planner.blocks import UserRhythm


class RhythmRepository:
    """Base interface for planned rhythm storage.

    Rhythms are always addressed through their owner; a rhythm id looked up
    under another user behaves as if it did not exist.
    """

    def save(self, rhythm: UserRhythm) -> UserRhythm:
        raise NotImplementedError

    def find_by_id(self, user_id: UUID, rhythm_id: UUID) -> Optional[UserRhythm]:
        raise NotImplementedError

    def find_all_by_user(self, user_id: UUID) -> List[UserRhythm]:
        raise NotImplementedError

    def delete(self, user_id: UUID, rhythm_id: UUID) -> bool:
        """Remove a rhythm; return whether anything was deleted."""
        raise NotImplementedError
