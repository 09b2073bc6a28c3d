"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from . import schemas, security, service
from .dependencies import get_authenticator

router = APIRouter()


@router.post("/login")
def login(
    request: schemas.LoginRequest,
    authenticator: security.TokenAuthenticator = Depends(get_authenticator),
) -> dict:
    return service.login(request, authenticator=authenticator).model_dump()
