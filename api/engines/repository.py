"""
Engine persistence (raw SQL).

Every mutation runs in its own `Database.transaction()`.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

import asyncpg

from core.db import Database, affected_rows
from core.errors import ConflictError, NotFoundError

from .schemas import Engine, EngineRequest


def engine_from_row(row: dict[str, Any] | asyncpg.Record) -> Engine:
    return Engine(
        engine_id=row["engine_id"],
        displacement=float(row["displacement"]),
        no_of_cylinders=int(row["no_of_cylinders"]),
        car_range=float(row["car_range"]),
    )


class EngineStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_by_id(self, engine_id: UUID, *, timeout: float | None = None) -> Engine:
        row = await self._db.fetch_one(
            """
            SELECT engine_id, displacement, no_of_cylinders, car_range
            FROM engine
            WHERE engine_id = $1
            """,
            engine_id,
            timeout=timeout,
        )
        if row is None:
            raise NotFoundError("Engine", engine_id=str(engine_id))
        return engine_from_row(row)

    async def create(self, engine_req: EngineRequest, *, timeout: float | None = None) -> Engine:
        async with self._db.transaction(timeout=timeout) as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO engine (engine_id, displacement, no_of_cylinders, car_range)
                VALUES ($1, $2, $3, $4)
                RETURNING engine_id, displacement, no_of_cylinders, car_range
                """,
                uuid4(),
                engine_req.displacement,
                engine_req.no_of_cylinders,
                engine_req.car_range,
            )
            return engine_from_row(row)

    async def update(
        self,
        engine_id: UUID,
        engine_req: EngineRequest,
        *,
        timeout: float | None = None,
    ) -> Engine:
        async with self._db.transaction(timeout=timeout) as conn:
            row = await conn.fetchrow(
                """
                UPDATE engine
                SET displacement = $1,
                    no_of_cylinders = $2,
                    car_range = $3
                WHERE engine_id = $4
                RETURNING engine_id, displacement, no_of_cylinders, car_range
                """,
                engine_req.displacement,
                engine_req.no_of_cylinders,
                engine_req.car_range,
                engine_id,
            )
            if row is None:
                raise NotFoundError("Engine", engine_id=str(engine_id))
            return engine_from_row(row)

    async def delete(self, engine_id: UUID, *, timeout: float | None = None) -> Engine:
        """
        Delete an engine and return the deleted snapshot.

        Refuses with ConflictError while any car still references the engine.
        """
        async with self._db.transaction(timeout=timeout) as conn:
            row = await conn.fetchrow(
                """
                SELECT engine_id, displacement, no_of_cylinders, car_range
                FROM engine
                WHERE engine_id = $1
                FOR UPDATE
                """,
                engine_id,
            )
            if row is None:
                raise NotFoundError("Engine", engine_id=str(engine_id))

            referencing = await conn.fetchval(
                "SELECT count(*) FROM cars WHERE engine_id = $1",
                engine_id,
            )
            if referencing:
                raise ConflictError(
                    "Engine is still referenced by cars.",
                    engine_id=str(engine_id),
                    car_count=int(referencing),
                )

            try:
                status = await conn.execute("DELETE FROM engine WHERE engine_id = $1", engine_id)
            except asyncpg.ForeignKeyViolationError as exc:
                raise ConflictError("Engine is still referenced by cars.", engine_id=str(engine_id)) from exc

            if affected_rows(status) == 0:
                raise ConflictError("Engine was deleted concurrently.", engine_id=str(engine_id))
            return engine_from_row(row)
