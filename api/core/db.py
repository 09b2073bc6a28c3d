"""
Async database access (raw SQL) using asyncpg.

`Database` owns the connection pool. One instance is created at startup,
connected in the FastAPI lifespan (see `api/main.py`) and handed to every
store that needs it.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Units of work that span more than one statement go through
`Database.transaction()`, which commits on normal exit and rolls back on any
exception (cancellation included).
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from .config import env_float, env_int
from .errors import AppError, InternalError

logger = logging.getLogger(__name__)

# Errors that mean the store itself failed, as opposed to a classified AppError.
DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def affected_rows(status: str) -> int:
    """
    Parse the row count out of an asyncpg command status ("DELETE 1").
    """
    try:
        return int((status or "").rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class Database:
    def __init__(
        self,
        dsn: str | None = None,
        *,
        min_size: int | None = None,
        max_size: int | None = None,
        command_timeout: float | None = None,
    ) -> None:
        self._dsn = dsn
        self._min_size = min_size if min_size is not None else env_int("DB_POOL_MIN_SIZE", 1)
        self._max_size = max_size if max_size is not None else env_int("DB_POOL_MAX_SIZE", 5)
        self._command_timeout = (
            command_timeout if command_timeout is not None else env_float("DB_COMMAND_TIMEOUT_S", 30.0)
        )
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        if self._pool is not None:
            return None
        self._pool = await asyncpg.create_pool(
            dsn=self._dsn or database_url(),
            min_size=self._min_size,
            max_size=self._max_size,
            command_timeout=self._command_timeout,
        )
        logger.info("db_pool_opened min_size=%s max_size=%s", self._min_size, self._max_size)

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None
        logger.info("db_pool_closed")

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call connect() on startup.")
        return self._pool

    async def fetch_one(self, sql: str, *args: Any, timeout: float | None = None) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        try:
            row = await self.pool().fetchrow(sql, *args, timeout=timeout)
        except TimeoutError as exc:
            raise InternalError("Query deadline exceeded.") from exc
        except DRIVER_ERRORS as exc:
            raise InternalError(f"Query failed: {exc}") from exc
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any, timeout: float | None = None) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        try:
            rows = await self.pool().fetch(sql, *args, timeout=timeout)
        except TimeoutError as exc:
            raise InternalError("Query deadline exceeded.") from exc
        except DRIVER_ERRORS as exc:
            raise InternalError(f"Query failed: {exc}") from exc
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any, timeout: float | None = None) -> str:
        """
        Run a statement and return its command status.
        """
        try:
            return await self.pool().execute(sql, *args, timeout=timeout)
        except TimeoutError as exc:
            raise InternalError("Statement deadline exceeded.") from exc
        except DRIVER_ERRORS as exc:
            raise InternalError(f"Statement failed: {exc}") from exc

    @asynccontextmanager
    async def transaction(self, *, timeout: float | None = None) -> AsyncIterator[asyncpg.Connection]:
        """
        Scoped unit of work on one pooled connection.

        Exactly one of commit/rollback runs per call. `timeout` bounds the
        whole unit of work; when it expires the transaction is rolled back and
        InternalError is raised.
        """
        try:
            async with self.pool().acquire() as conn:  # type: asyncpg.Connection
                tx = conn.transaction()
                await tx.start()
                try:
                    async with asyncio.timeout(timeout):
                        yield conn
                except BaseException:
                    await _rollback(tx)
                    raise
                await tx.commit()
        except AppError:
            raise
        except TimeoutError as exc:
            raise InternalError("Transaction deadline exceeded.") from exc
        except DRIVER_ERRORS as exc:
            raise InternalError(f"Transaction failed: {exc}") from exc


async def _rollback(tx: asyncpg.transaction.Transaction) -> None:
    try:
        await tx.rollback()
    except Exception:
        # The original error is what the caller needs to see.
        logger.exception("transaction_rollback_failed")
