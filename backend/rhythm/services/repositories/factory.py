"""Rhythm repository factory."""
from __future__ import annotations

from functools import lru_cache

from sqlalchemy.orm import Session

from rhythm.core.config import settings
from rhythm.services.repositories.base import RhythmRepository
from rhythm.services.repositories.memory import InMemoryRhythmRepository
from rhythm.services.repositories.sql import SqlAlchemyRhythmRepository


@lru_cache
def get_memory_repository() -> InMemoryRhythmRepository:
    """Single in-memory store shared by every request of the process."""
    return InMemoryRhythmRepository()


def get_rhythm_repository(db: Session) -> RhythmRepository:
    if settings.rhythm_repository == "memory":
        return get_memory_repository()
    return SqlAlchemyRhythmRepository(db)
