"""
Engine request validation. Pure; raises on the first failing rule.
"""

from __future__ import annotations

import math

from core.errors import ValidationError

from .schemas import Engine, EngineRequest


def is_positive(value: float) -> bool:
    # NaN and infinities are rejected along with zero and negatives.
    return math.isfinite(value) and value > 0


def validate_engine_fields(engine: Engine | EngineRequest, *, prefix: str = "") -> None:
    if not is_positive(engine.displacement):
        raise ValidationError("displacement must be greater than zero", field=f"{prefix}displacement")

    if not is_positive(engine.no_of_cylinders):
        raise ValidationError("no_of_cylinders must be greater than zero", field=f"{prefix}no_of_cylinders")

    if not is_positive(engine.car_range):
        raise ValidationError("car_range must be greater than zero", field=f"{prefix}car_range")


def validate_engine_request(engine_req: EngineRequest) -> None:
    validate_engine_fields(engine_req)
