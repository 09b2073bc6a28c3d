"""Tests for the Database helper and its scoped transaction."""

from __future__ import annotations

import asyncio

import asyncpg
import pytest

from core import db as db_module
from core.db import Database, affected_rows
from core.errors import InternalError, NotFoundError


class TestScopedTransaction:
    @pytest.mark.asyncio
    async def test_commits_on_success(self, db, fake_conn):
        async with db.transaction() as conn:
            await conn.execute("UPDATE engine SET car_range = 1")

        fake_conn.tx.start.assert_awaited_once()
        fake_conn.tx.commit.assert_awaited_once()
        fake_conn.tx.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_app_error_rolls_back_and_propagates_unchanged(self, db, fake_conn):
        with pytest.raises(NotFoundError):
            async with db.transaction():
                raise NotFoundError("Car", car_id="x")

        fake_conn.tx.rollback.assert_awaited_once()
        fake_conn.tx.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_driver_error_rolls_back_as_internal(self, db, fake_conn):
        fake_conn.execute.side_effect = asyncpg.PostgresConnectionError("connection reset")

        with pytest.raises(InternalError, match="Transaction failed"):
            async with db.transaction() as conn:
                await conn.execute("DELETE FROM cars")

        fake_conn.tx.rollback.assert_awaited_once()
        fake_conn.tx.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unexpected_exception_rolls_back(self, db, fake_conn):
        with pytest.raises(KeyError):
            async with db.transaction():
                raise KeyError("boom")

        fake_conn.tx.rollback.assert_awaited_once()
        fake_conn.tx.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deadline_rolls_back(self, db, fake_conn):
        async def slow_statement(*_args, **_kwargs):
            await asyncio.sleep(5)

        fake_conn.execute.side_effect = slow_statement

        with pytest.raises(InternalError, match="deadline exceeded"):
            async with db.transaction(timeout=0.01) as conn:
                await conn.execute("UPDATE cars SET price = 1")

        fake_conn.tx.rollback.assert_awaited_once()
        fake_conn.tx.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancellation_rolls_back(self, db, fake_conn):
        entered = asyncio.Event()

        async def unit_of_work():
            async with db.transaction() as conn:
                entered.set()
                await asyncio.sleep(5)
                await conn.execute("UPDATE cars SET price = 1")

        task = asyncio.create_task(unit_of_work())
        await entered.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        fake_conn.tx.rollback.assert_awaited_once()
        fake_conn.tx.commit.assert_not_awaited()
        fake_conn.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rollback_failure_keeps_original_error(self, db, fake_conn):
        fake_conn.tx.rollback.side_effect = asyncpg.InterfaceError("connection is closed")

        with pytest.raises(NotFoundError):
            async with db.transaction():
                raise NotFoundError("Engine")

    @pytest.mark.asyncio
    async def test_commit_failure_is_internal(self, db, fake_conn):
        fake_conn.tx.commit.side_effect = asyncpg.SerializationError("could not serialize access")

        with pytest.raises(InternalError):
            async with db.transaction():
                pass

        fake_conn.tx.rollback.assert_not_awaited()


class TestSingleStatements:
    @pytest.mark.asyncio
    async def test_fetch_one_returns_dict(self, db, fake_pool):
        fake_pool.fetchrow.return_value = {"engine_id": 1}
        assert await db.fetch_one("SELECT 1", timeout=2.0) == {"engine_id": 1}
        fake_pool.fetchrow.assert_awaited_once_with("SELECT 1", timeout=2.0)

    @pytest.mark.asyncio
    async def test_fetch_one_missing_row(self, db, fake_pool):
        fake_pool.fetchrow.return_value = None
        assert await db.fetch_one("SELECT 1") is None

    @pytest.mark.asyncio
    async def test_fetch_all_driver_error_is_internal(self, db, fake_pool):
        fake_pool.fetch.side_effect = asyncpg.PostgresError("relation does not exist")
        with pytest.raises(InternalError):
            await db.fetch_all("SELECT * FROM missing")

    @pytest.mark.asyncio
    async def test_execute_timeout_is_internal(self, db, fake_pool):
        fake_pool.execute.side_effect = TimeoutError()
        with pytest.raises(InternalError, match="deadline"):
            await db.execute("DELETE FROM cars")

    def test_pool_before_connect_raises(self):
        with pytest.raises(RuntimeError, match="not initialized"):
            Database(dsn="postgresql://x").pool()


class TestConfiguration:
    def test_database_url_required(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            db_module.database_url()

    def test_sslmode_is_stripped(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/cars?sslmode=require&application_name=api")
        assert db_module.database_url() == "postgresql://u:p@db:5432/cars?application_name=api"

    def test_pool_sizes_from_env(self, monkeypatch):
        monkeypatch.setenv("DB_POOL_MAX_SIZE", "12")
        monkeypatch.setenv("DB_POOL_MIN_SIZE", "not-a-number")
        database = Database()
        assert database._max_size == 12
        assert database._min_size == 1

    @pytest.mark.parametrize(
        "status, expected",
        [("DELETE 1", 1), ("DELETE 0", 0), ("UPDATE 3", 3), ("", 0), ("SELECT", 0)],
    )
    def test_affected_rows(self, status, expected):
        assert affected_rows(status) == expected
