"""
Engine API endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from auth import dependencies as auth_dependencies
from core.config import request_timeout_s

from . import schemas, service
from .repository import EngineStore

router = APIRouter()


def get_engine_store(request: Request) -> EngineStore:
    return request.app.state.engine_store


@router.get("/engine/{engine_id}")
async def get_engine(
    engine_id: UUID,
    _: str = Depends(auth_dependencies.get_current_subject),
    store: EngineStore = Depends(get_engine_store),
) -> dict:
    engine = await service.get_engine(store, engine_id, timeout=request_timeout_s())
    return engine.model_dump(mode="json")


@router.post("/engine", status_code=status.HTTP_201_CREATED)
async def create_engine(
    request: schemas.EngineRequest,
    _: str = Depends(auth_dependencies.get_current_subject),
    store: EngineStore = Depends(get_engine_store),
) -> dict:
    engine = await service.create_engine(store, request, timeout=request_timeout_s())
    return engine.model_dump(mode="json")


@router.put("/engine/{engine_id}")
async def update_engine(
    engine_id: UUID,
    request: schemas.EngineRequest,
    _: str = Depends(auth_dependencies.get_current_subject),
    store: EngineStore = Depends(get_engine_store),
) -> dict:
    engine = await service.update_engine(store, engine_id, request, timeout=request_timeout_s())
    return engine.model_dump(mode="json")


@router.delete("/engine/{engine_id}")
async def delete_engine(
    engine_id: UUID,
    _: str = Depends(auth_dependencies.get_current_subject),
    store: EngineStore = Depends(get_engine_store),
) -> dict:
    engine = await service.delete_engine(store, engine_id, timeout=request_timeout_s())
    return engine.model_dump(mode="json")
