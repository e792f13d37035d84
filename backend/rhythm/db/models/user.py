"""User ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from rhythm.db.base import Base


class User(Base):
    """Owner of planned rhythms; rows are created on a user's first plan."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    last_planned_at = Column(DateTime(timezone=True), nullable=True)

    rhythms = relationship(
        "UserRhythmRecord",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
