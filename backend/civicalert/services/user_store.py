from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from civicalert.models.user import UserRecord

QUERYABLE_FIELDS = {
    "username": UserRecord.username,
    "email": UserRecord.email,
}


class UserRecordStore:
    """Keyed access to user profile records.

    Mirrors the operations the signup/login flows need from a keyed tree
    store: get by key, query by field equality, set by key.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str) -> Optional[UserRecord]:
        return await self.db.get(UserRecord, user_id)

    async def find_by(self, field: str, value: str) -> Optional[UserRecord]:
        column = QUERYABLE_FIELDS.get(field)
        if column is None:
            raise ValueError(f"Field {field!r} is not queryable")
        result = await self.db.execute(select(UserRecord).where(column == value).limit(1))
        return result.scalar_one_or_none()

    async def exists_with(self, field: str, value: str) -> bool:
        return await self.find_by(field, value) is not None

    async def set(self, user_id: str, *, username: str, email: str, role: str) -> UserRecord:
        """Write the record under ``user_id``, replacing any existing one.

        ``created_at`` is assigned by the database. The write is committed
        before returning, so a failed commit surfaces to the caller.
        """
        existing = await self.get(user_id)
        if existing is not None:
            await self.db.delete(existing)
            await self.db.flush()

        record = UserRecord(id=user_id, username=username, email=email, role=role)
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)
        return record
