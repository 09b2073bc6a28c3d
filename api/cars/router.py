"""
Car API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from auth import dependencies as auth_dependencies
from core.config import request_timeout_s

from . import schemas, service
from .repository import CarStore

router = APIRouter()


def get_car_store(request: Request) -> CarStore:
    return request.app.state.car_store


@router.get("/car/{car_id}")
async def get_car(
    car_id: UUID,
    _: str = Depends(auth_dependencies.get_current_subject),
    store: CarStore = Depends(get_car_store),
) -> dict:
    """
    Unknown ids answer 200 with an empty object.
    """
    car = await service.get_car(store, car_id, timeout=request_timeout_s())
    if car is None:
        return {}
    return car.model_dump(mode="json")


@router.get("/cars/{brand}")
async def get_cars_by_brand(
    brand: str,
    is_engine: bool = Query(default=False, alias="isEngine"),
    _: str = Depends(auth_dependencies.get_current_subject),
    store: CarStore = Depends(get_car_store),
) -> list[dict]:
    cars = await service.get_cars_by_brand(
        store,
        brand,
        include_engine=is_engine,
        timeout=request_timeout_s(),
    )
    return [car.model_dump(mode="json") for car in cars]


@router.post("/cars", status_code=status.HTTP_201_CREATED)
async def create_car(
    request: schemas.CarRequest,
    _: str = Depends(auth_dependencies.get_current_subject),
    store: CarStore = Depends(get_car_store),
) -> dict:
    car = await service.create_car(store, request, timeout=request_timeout_s())
    return car.model_dump(mode="json")


@router.put("/cars/{car_id}")
async def update_car(
    car_id: UUID,
    request: schemas.CarRequest,
    _: str = Depends(auth_dependencies.get_current_subject),
    store: CarStore = Depends(get_car_store),
) -> dict:
    car = await service.update_car(store, car_id, request, timeout=request_timeout_s())
    return car.model_dump(mode="json")


@router.delete("/cars/{car_id}")
async def delete_car(
    car_id: UUID,
    _: str = Depends(auth_dependencies.get_current_subject),
    store: CarStore = Depends(get_car_store),
) -> dict:
    car = await service.delete_car(store, car_id, timeout=request_timeout_s())
    return car.model_dump(mode="json")
