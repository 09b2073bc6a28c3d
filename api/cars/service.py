"""
Car business logic.
"""

from __future__ import annotations

import logging
from uuid import UUID

from . import schemas, validation
from .repository import CarStore

logger = logging.getLogger(__name__)


async def get_car(store: CarStore, car_id: UUID, *, timeout: float | None = None) -> schemas.Car | None:
    return await store.get_by_id(car_id, timeout=timeout)


async def get_cars_by_brand(
    store: CarStore,
    brand: str,
    *,
    include_engine: bool = False,
    timeout: float | None = None,
) -> list[schemas.Car] | list[schemas.CarSummary]:
    return await store.get_by_brand(brand, include_engine=include_engine, timeout=timeout)


async def create_car(store: CarStore, payload: schemas.CarRequest, *, timeout: float | None = None) -> schemas.Car:
    validation.validate_car_request(payload)
    car = await store.create(payload, timeout=timeout)
    logger.info("car_created car_id=%s engine_id=%s brand=%s", car.id, payload.engine.engine_id, car.brand)
    return car


async def update_car(
    store: CarStore,
    car_id: UUID,
    payload: schemas.CarRequest,
    *,
    timeout: float | None = None,
) -> schemas.Car:
    validation.validate_car_request(payload)
    car = await store.update(car_id, payload, timeout=timeout)
    logger.info("car_updated car_id=%s", car_id)
    return car


async def delete_car(store: CarStore, car_id: UUID, *, timeout: float | None = None) -> schemas.Car:
    car = await store.delete(car_id, timeout=timeout)
    logger.info("car_deleted car_id=%s", car_id)
    return car
