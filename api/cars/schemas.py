"""
Car API schemas (request/response models).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from engines.schemas import Engine


class FuelType(str, Enum):
    PETROL = "Petrol"
    DIESEL = "Diesel"
    ELECTRIC = "Electric"
    HYBRID = "Hybrid"


class CarRequest(BaseModel):
    name: str = ""
    year: str = ""
    brand: str = ""
    fuel_type: str = ""
    engine: Engine = Field(default_factory=Engine)
    price: float = 0

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, value: object) -> object:
        # Clients send the year either as "2020" or as 2020.
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class CarSummary(BaseModel):
    """
    Car without its engine, as listed when engine details are not requested.
    """

    id: UUID
    name: str
    year: str
    brand: str
    fuel_type: str
    price: float
    created_at: datetime
    updated_at: datetime


class Car(CarSummary):
    engine: Engine | None = None
