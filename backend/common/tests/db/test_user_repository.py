"""Tests for SqliteUserRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from common.dal.models import User
from common.db.connection import Database
from common.db.user_repository import SqliteUserRepository

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def repo(tmp_path: Path):
    db = Database(tmp_path / "test.db")
    db.connect()
    yield SqliteUserRepository(db)
    db.close()


class TestCreateAndRead:
    async def test_create_and_get_by_username(self, repo: SqliteUserRepository) -> None:
        await repo.create_user(User(user_id="u1", username="alice"))
        result = await repo.get_by_username("alice")
        assert result == User(user_id="u1", username="alice")

    async def test_get_by_id(self, repo: SqliteUserRepository) -> None:
        await repo.create_user(User(user_id="u1", username="alice"))
        result = await repo.get_by_id("u1")
        assert result is not None
        assert result.username == "alice"

    async def test_unknown_lookups_return_none(self, repo: SqliteUserRepository) -> None:
        assert await repo.get_by_username("nobody") is None
        assert await repo.get_by_id("missing") is None

    async def test_lookup_is_case_sensitive(self, repo: SqliteUserRepository) -> None:
        await repo.create_user(User(user_id="u1", username="alice"))
        assert await repo.get_by_username("Alice") is None


class TestDuplicates:
    async def test_duplicate_username_raises(self, repo: SqliteUserRepository) -> None:
        await repo.create_user(User(user_id="u1", username="alice"))
        with pytest.raises(ValueError, match="already taken"):
            await repo.create_user(User(user_id="u2", username="alice"))

    async def test_duplicate_id_raises(self, repo: SqliteUserRepository) -> None:
        await repo.create_user(User(user_id="u1", username="alice"))
        with pytest.raises(ValueError, match="already exists"):
            await repo.create_user(User(user_id="u1", username="bob"))

    async def test_failed_insert_leaves_repository_usable(self, repo: SqliteUserRepository) -> None:
        await repo.create_user(User(user_id="u1", username="alice"))
        with pytest.raises(ValueError):
            await repo.create_user(User(user_id="u2", username="alice"))
        await repo.create_user(User(user_id="u3", username="bob"))
        assert await repo.get_by_username("bob") is not None


class TestListExcluding:
    async def test_excludes_given_username_and_sorts(self, repo: SqliteUserRepository) -> None:
        for user_id, name in [("u1", "carol"), ("u2", "alice"), ("u3", "bob")]:
            await repo.create_user(User(user_id=user_id, username=name))

        result = await repo.list_excluding("bob")
        assert [u.username for u in result] == ["alice", "carol"]

    async def test_unknown_username_returns_everyone(self, repo: SqliteUserRepository) -> None:
        await repo.create_user(User(user_id="u1", username="alice"))
        result = await repo.list_excluding("nobody")
        assert [u.username for u in result] == ["alice"]

    async def test_empty_directory(self, repo: SqliteUserRepository) -> None:
        assert await repo.list_excluding("alice") == []
