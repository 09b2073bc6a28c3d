"""
Auth business logic.

There is a single operator identity, configured through the environment
(see `security.operator_username` / `security.operator_password_hash`).
"""

from __future__ import annotations

import hmac
import logging

from core.errors import InternalError, UnauthorizedError

from . import schemas, security

logger = logging.getLogger(__name__)


def login(payload: schemas.LoginRequest, *, authenticator: security.TokenAuthenticator) -> schemas.TokenResponse:
    username = payload.username.strip()
    username_ok = hmac.compare_digest(username.encode("utf-8"), security.operator_username().encode("utf-8"))
    # bcrypt runs even when the username is wrong.
    password_ok = security.verify_password(payload.password, security.operator_password_hash())
    if not (username_ok and password_ok):
        logger.warning("login_rejected username=%s", username)
        raise UnauthorizedError("Incorrect username or password.")

    try:
        token = authenticator.issue(username)
    except security.AuthSecurityError as exc:
        raise InternalError(f"Failed to generate token: {exc}") from exc

    logger.info("login_succeeded username=%s", username)
    return schemas.TokenResponse(token=token)


def subject_from_token(access_token: str | None, *, authenticator: security.TokenAuthenticator) -> str:
    try:
        return authenticator.verify(access_token)
    except security.AuthSecurityError as exc:
        raise UnauthorizedError(str(exc)) from exc
