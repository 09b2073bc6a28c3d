"""
Engine API schemas (request/response models).

Numeric fields default to zero so that missing values reach the validator and
fail with its message instead of a generic schema error.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel


class Engine(BaseModel):
    engine_id: UUID | None = None
    displacement: float = 0
    no_of_cylinders: int = 0
    car_range: float = 0


class EngineRequest(BaseModel):
    displacement: float = 0
    no_of_cylinders: int = 0
    car_range: float = 0
