"""
Engine business logic.

Validation happens here, before the store is touched, so an invalid request
never opens a transaction.
"""

from __future__ import annotations

import logging
from uuid import UUID

from . import schemas, validation
from .repository import EngineStore

logger = logging.getLogger(__name__)


async def get_engine(store: EngineStore, engine_id: UUID, *, timeout: float | None = None) -> schemas.Engine:
    return await store.get_by_id(engine_id, timeout=timeout)


async def create_engine(
    store: EngineStore,
    payload: schemas.EngineRequest,
    *,
    timeout: float | None = None,
) -> schemas.Engine:
    validation.validate_engine_request(payload)
    engine = await store.create(payload, timeout=timeout)
    logger.info("engine_created engine_id=%s", engine.engine_id)
    return engine


async def update_engine(
    store: EngineStore,
    engine_id: UUID,
    payload: schemas.EngineRequest,
    *,
    timeout: float | None = None,
) -> schemas.Engine:
    validation.validate_engine_request(payload)
    engine = await store.update(engine_id, payload, timeout=timeout)
    logger.info("engine_updated engine_id=%s", engine_id)
    return engine


async def delete_engine(store: EngineStore, engine_id: UUID, *, timeout: float | None = None) -> schemas.Engine:
    engine = await store.delete(engine_id, timeout=timeout)
    logger.info("engine_deleted engine_id=%s", engine_id)
    return engine
