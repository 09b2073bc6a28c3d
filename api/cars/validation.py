"""
Car request validation.

Pure functions; `validate_car_request` raises ValidationError for the first
rule that fails, in field order: name, year, fuel type, engine reference,
engine details, price.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from core.errors import ValidationError
from engines.validation import is_positive, validate_engine_fields

from .schemas import CarRequest, FuelType

MIN_YEAR = 1886
NIL_UUID = UUID(int=0)
FUEL_TYPES = frozenset(fuel_type.value for fuel_type in FuelType)


def current_year() -> int:
    return datetime.now(timezone.utc).year


def validate_car_request(car_req: CarRequest) -> None:
    validate_name(car_req.name)
    validate_year(car_req.year)
    validate_fuel_type(car_req.fuel_type)
    validate_engine_reference(car_req.engine.engine_id)
    validate_engine_fields(car_req.engine, prefix="engine.")
    validate_price(car_req.price)


def validate_name(name: str) -> None:
    if not (name or "").strip():
        raise ValidationError("name is required", field="name")


def validate_year(year: str) -> None:
    raw = year or ""
    if not raw:
        raise ValidationError("year is required", field="year")

    if not (raw.isascii() and raw.isdigit()):
        raise ValidationError("year must be a valid number", field="year")

    if len(raw) != 4 or not MIN_YEAR <= int(raw) <= current_year():
        raise ValidationError(f"year must be between {MIN_YEAR} and current year", field="year")


def validate_fuel_type(fuel_type: str) -> None:
    if fuel_type not in FUEL_TYPES:
        raise ValidationError(
            "fuel_type must be one of: " + ", ".join(f.value for f in FuelType),
            field="fuel_type",
        )


def validate_engine_reference(engine_id: UUID | None) -> None:
    if engine_id is None or engine_id == NIL_UUID:
        raise ValidationError("engine_id is required", field="engine.engine_id")


def validate_price(price: float) -> None:
    if not is_positive(price):
        raise ValidationError("price must be greater than zero", field="price")
