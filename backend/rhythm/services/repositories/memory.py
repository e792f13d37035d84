"""Process-local rhythm storage."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from rhythm.planner.blocks import UserRhythm
from rhythm.services.repositories.base import RhythmRepository

logger = logging.getLogger(__name__)


class InMemoryRhythmRepository(RhythmRepository):
    def __init__(self) -> None:
        self._rhythms: Dict[Tuple[UUID, UUID], UserRhythm] = {}
        self._lock = Lock()

    def save(self, rhythm: UserRhythm) -> UserRhythm:
        with self._lock:
            self._rhythms[(rhythm.user_id, rhythm.id)] = rhythm
        logger.debug("Stored rhythm %s for user %s (memory)", rhythm.id, rhythm.user_id)
        return rhythm

    def find_by_id(self, user_id: UUID, rhythm_id: UUID) -> Optional[UserRhythm]:
        return self._rhythms.get((user_id, rhythm_id))

    def find_all_by_user(self, user_id: UUID) -> List[UserRhythm]:
        with self._lock:
            return [rhythm for (owner, _), rhythm in self._rhythms.items() if owner == user_id]

    def delete(self, user_id: UUID, rhythm_id: UUID) -> bool:
        with self._lock:
            return self._rhythms.pop((user_id, rhythm_id), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._rhythms.clear()
