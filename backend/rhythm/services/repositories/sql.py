"""SQLAlchemy-backed rhythm storage."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy import asc
from sqlalchemy.orm import Session

from rhythm.api.schemas.rhythm import BlockPayload
from rhythm.db.models.rhythm import UserRhythmRecord
from rhythm.planner.blocks import UserRhythm
from rhythm.services.repositories.base import RhythmRepository
from rhythm.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)


class SqlAlchemyRhythmRepository(RhythmRepository):
    """Stores each rhythm as one ``user_rhythms`` row with its blocks as JSON."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def save(self, rhythm: UserRhythm) -> UserRhythm:
        user = get_or_create_user(self.db, rhythm.user_id)
        user.last_planned_at = datetime.now(timezone.utc)
        record = UserRhythmRecord(
            id=rhythm.id,
            user_id=rhythm.user_id,
            blocks=[BlockPayload.from_block(block).model_dump(mode="json") for block in rhythm.blocks],
            block_count=len(rhythm.blocks),
            complexity_level=rhythm.complexity_level,
            fitness=rhythm.fitness,
        )
        self.db.add(record)
        self.db.commit()
        logger.info("Stored rhythm %s for user %s (%d blocks)", rhythm.id, rhythm.user_id, len(rhythm.blocks))
        return rhythm

    def find_by_id(self, user_id: UUID, rhythm_id: UUID) -> Optional[UserRhythm]:
        record = self._owned_record(user_id, rhythm_id)
        return _to_rhythm(record) if record else None

    def find_all_by_user(self, user_id: UUID) -> List[UserRhythm]:
        records = (
            self.db.query(UserRhythmRecord)
            .filter(UserRhythmRecord.user_id == user_id)
            .order_by(asc(UserRhythmRecord.created_at))
            .all()
        )
        return [_to_rhythm(record) for record in records]

    def delete(self, user_id: UUID, rhythm_id: UUID) -> bool:
        record = self._owned_record(user_id, rhythm_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.commit()
        return True

    def _owned_record(self, user_id: UUID, rhythm_id: UUID) -> Optional[UserRhythmRecord]:
        record = self.db.get(UserRhythmRecord, rhythm_id)
        if record is None or record.user_id != user_id:
            return None
        return record


def _to_rhythm(record: UserRhythmRecord) -> UserRhythm:
    return UserRhythm(
        id=record.id,
        user_id=record.user_id,
        blocks=tuple(BlockPayload.model_validate(item).to_block() for item in record.blocks or []),
        complexity_level=record.complexity_level,
        fitness=record.fitness,
    )
