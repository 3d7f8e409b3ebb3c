import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from civicalert.services.user_store import UserRecordStore


class TestUserRecordStore:
    """Tests for keyed access to user records."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, db_session: AsyncSession):
        store = UserRecordStore(db_session)
        record = await store.set("u1", username="alice", email="a@x.com", role="employee")

        assert record.created_at is not None
        fetched = await store.get("u1")
        assert fetched is not None
        assert fetched.username == "alice"
        assert await store.get("u2") is None

    @pytest.mark.asyncio
    async def test_find_by_field(self, db_session: AsyncSession, test_user):
        store = UserRecordStore(db_session)

        assert (await store.find_by("email", "a@x.com")).id == "u1"
        assert (await store.find_by("username", "alice")).id == "u1"
        assert await store.find_by("username", "bob") is None
        assert await store.exists_with("email", "a@x.com") is True
        assert await store.exists_with("email", "b@x.com") is False

    @pytest.mark.asyncio
    async def test_find_by_unknown_field(self, db_session: AsyncSession):
        store = UserRecordStore(db_session)
        with pytest.raises(ValueError):
            await store.find_by("role", "admin")

    @pytest.mark.asyncio
    async def test_set_overwrites_key(self, db_session: AsyncSession, test_user):
        """Test that writing an existing key replaces the record."""
        store = UserRecordStore(db_session)
        await store.set("u1", username="alice2", email="a2@x.com", role="admin")

        record = await store.get("u1")
        assert record.username == "alice2"
        assert record.role == "admin"
        assert await store.find_by("username", "alice") is None
