"""Database models."""

from civicalert.models.user import UserRecord, UserRole

__all__ = [
    "UserRecord",
    "UserRole",
]
