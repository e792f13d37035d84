"""Helpers for working with users."""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rhythm.db.models.user import User

logger = logging.getLogger(__name__)


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Return the user row for ``user_id``, inserting it on first sight.

    Concurrent inserts of the same id resolve to the row that won the race.
    """
    user = db.get(User, user_id)
    if user is not None:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing is None:
            raise
        return existing
    logger.debug("Created user %s", user_id)
    return user
