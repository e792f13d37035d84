"""Planned rhythm ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from rhythm.db.base import Base
from rhythm.db.types import JSONBCompat


class UserRhythmRecord(Base):
    __tablename__ = "user_rhythms"
    __table_args__ = (Index("ix_user_rhythms_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Serialized planned blocks, in chronological order.
    blocks = Column(JSONBCompat, nullable=False, default=list)
    block_count = Column(Integer, nullable=False, default=0)
    complexity_level = Column(String(length=32), nullable=True)
    fitness = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    user = relationship("User", back_populates="rhythms")
