"""Database utilities and models."""

from rhythm.db.base import Base
from rhythm.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
