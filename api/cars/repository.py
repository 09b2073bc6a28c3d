"""
Car persistence (raw SQL).

Cars reference engines by `engine_id`; the engine row is never written here.
Every mutation runs in its own `Database.transaction()`.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

import asyncpg

from core.db import Database, affected_rows
from core.errors import ConflictError, NotFoundError, ReferentialError
from engines.repository import engine_from_row

from .schemas import Car, CarRequest, CarSummary

_CAR_COLUMNS = """
    c.id, c.name, c.year, c.brand, c.fuel_type,
    c.price, c.created_at, c.updated_at
"""

_ENGINE_COLUMNS = """
    e.engine_id, e.displacement, e.no_of_cylinders, e.car_range
"""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _summary_fields(row: dict[str, Any] | asyncpg.Record) -> dict[str, Any]:
    return {
        "id": row["id"],
        "name": str(row["name"]),
        "year": str(row["year"]),
        "brand": str(row["brand"]),
        "fuel_type": str(row["fuel_type"]),
        "price": float(row["price"]),
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def car_from_row(row: dict[str, Any] | asyncpg.Record) -> Car:
    # LEFT JOIN: engine columns are NULL when the engine row is missing.
    engine = engine_from_row(row) if row["engine_id"] is not None else None
    return Car(**_summary_fields(row), engine=engine)


def car_summary_from_row(row: dict[str, Any] | asyncpg.Record) -> CarSummary:
    return CarSummary(**_summary_fields(row))


class CarStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get_by_id(self, car_id: UUID, *, timeout: float | None = None) -> Car | None:
        """
        Car joined with its engine, or None when there is no such car.
        """
        row = await self._db.fetch_one(
            f"""
            SELECT {_CAR_COLUMNS}, {_ENGINE_COLUMNS}
            FROM cars c
            LEFT JOIN engine e ON c.engine_id = e.engine_id
            WHERE c.id = $1
            """,
            car_id,
            timeout=timeout,
        )
        if row is None:
            return None
        return car_from_row(row)

    async def get_by_brand(
        self,
        brand: str,
        *,
        include_engine: bool = False,
        timeout: float | None = None,
    ) -> list[Car] | list[CarSummary]:
        if include_engine:
            rows = await self._db.fetch_all(
                f"""
                SELECT {_CAR_COLUMNS}, {_ENGINE_COLUMNS}
                FROM cars c
                LEFT JOIN engine e ON c.engine_id = e.engine_id
                WHERE c.brand = $1
                ORDER BY c.created_at, c.id
                """,
                brand,
                timeout=timeout,
            )
            return [car_from_row(row) for row in rows]

        rows = await self._db.fetch_all(
            f"""
            SELECT {_CAR_COLUMNS}
            FROM cars c
            WHERE c.brand = $1
            ORDER BY c.created_at, c.id
            """,
            brand,
            timeout=timeout,
        )
        return [car_summary_from_row(row) for row in rows]

    async def create(self, car_req: CarRequest, *, timeout: float | None = None) -> Car:
        """
        Insert a car after checking, in the same transaction, that its engine exists.

        The engine row is held with FOR KEY SHARE until commit so it cannot be
        deleted between the check and the insert. The returned engine is the
        one from the request, not re-read from storage.
        """
        engine_id = car_req.engine.engine_id

        async with self._db.transaction(timeout=timeout) as conn:
            engine_row = await conn.fetchrow(
                """
                SELECT engine_id
                FROM engine
                WHERE engine_id = $1
                FOR KEY SHARE
                """,
                engine_id,
            )
            if engine_row is None:
                raise ReferentialError("engine does not exist", engine_id=str(engine_id))

            car_id = uuid4()
            now = _utc_now()
            try:
                await conn.execute(
                    """
                    INSERT INTO cars (id, name, year, brand, fuel_type, engine_id, price, created_at, updated_at)
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    """,
                    car_id,
                    car_req.name,
                    car_req.year,
                    car_req.brand,
                    car_req.fuel_type,
                    engine_id,
                    car_req.price,
                    now,
                    now,
                )
            except asyncpg.ForeignKeyViolationError as exc:
                raise ReferentialError("engine does not exist", engine_id=str(engine_id)) from exc

        return Car(
            id=car_id,
            name=car_req.name,
            year=car_req.year,
            brand=car_req.brand,
            fuel_type=car_req.fuel_type,
            engine=car_req.engine.model_copy(),
            price=car_req.price,
            created_at=now,
            updated_at=now,
        )

    async def update(self, car_id: UUID, car_req: CarRequest, *, timeout: float | None = None) -> Car:
        """
        Update the scalar fields of a car. The engine reference is left as is.
        """
        async with self._db.transaction(timeout=timeout) as conn:
            row = await conn.fetchrow(
                f"""
                WITH c AS (
                    UPDATE cars
                    SET name = $1,
                        year = $2,
                        brand = $3,
                        fuel_type = $4,
                        price = $5,
                        updated_at = $6
                    WHERE id = $7
                    RETURNING id, name, year, brand, fuel_type, engine_id, price, created_at, updated_at
                )
                SELECT {_CAR_COLUMNS}, {_ENGINE_COLUMNS}
                FROM c
                LEFT JOIN engine e ON c.engine_id = e.engine_id
                """,
                car_req.name,
                car_req.year,
                car_req.brand,
                car_req.fuel_type,
                car_req.price,
                _utc_now(),
                car_id,
            )
            if row is None:
                raise NotFoundError("Car", car_id=str(car_id))
            return car_from_row(row)

    async def delete(self, car_id: UUID, *, timeout: float | None = None) -> Car:
        """
        Delete a car and return the snapshot read just before the delete.

        A concurrent delete that wins the race between the read and the
        DELETE surfaces as ConflictError.
        """
        async with self._db.transaction(timeout=timeout) as conn:
            row = await conn.fetchrow(
                f"""
                SELECT {_CAR_COLUMNS}, {_ENGINE_COLUMNS}
                FROM cars c
                LEFT JOIN engine e ON c.engine_id = e.engine_id
                WHERE c.id = $1
                """,
                car_id,
            )
            if row is None:
                raise NotFoundError("Car", car_id=str(car_id))

            status = await conn.execute("DELETE FROM cars WHERE id = $1", car_id)
            if affected_rows(status) == 0:
                raise ConflictError("Car was deleted concurrently.", car_id=str(car_id))
            return car_from_row(row)
