"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Header, Request

from core.errors import UnauthorizedError

from . import security, service

logger = logging.getLogger(__name__)


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise UnauthorizedError("Missing Authorization header.")

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise UnauthorizedError("Invalid Authorization header format.")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise UnauthorizedError("Authorization must be: Bearer <token>.")
    return token


def get_authenticator(request: Request) -> security.TokenAuthenticator:
    return request.app.state.authenticator


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_current_subject(
    request: Request,
    access_token: str = Depends(get_bearer_token),
    authenticator: security.TokenAuthenticator = Depends(get_authenticator),
) -> str:
    subject = service.subject_from_token(access_token, authenticator=authenticator)
    # Downstream handlers and audit logging read it from the request state.
    request.state.subject = subject
    logger.debug("request_authenticated subject=%s path=%s", subject, request.url.path)
    return subject
