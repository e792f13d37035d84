"""ORM models exposed for metadata discovery."""
from rhythm.db.models.rhythm import UserRhythmRecord
from rhythm.db.models.user import User

__all__ = [
    "User",
    "UserRhythmRecord",
]
