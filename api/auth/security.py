"""
Auth security helpers.

Tokens are stateless HS256 JWTs. Verification needs no store lookup, which
also means a token cannot be revoked before it expires: there is no logout.
"""

from __future__ import annotations

import time
from functools import lru_cache

import bcrypt
import jwt

from core.config import env_int, env_str

DEFAULT_JWT_SECRET = "dev-change-this-secret"


class AuthSecurityError(RuntimeError):
    pass


def jwt_secret() -> str:
    # Local default keeps development simple.
    # In production, set JWT_SECRET in environment.
    return env_str("JWT_SECRET", DEFAULT_JWT_SECRET)


def jwt_algorithm() -> str:
    return env_str("JWT_ALG", "HS256")


def token_ttl_hours() -> int:
    return env_int("TOKEN_TTL_HOURS", 24)


def operator_username() -> str:
    return env_str("OPERATOR_USERNAME", "admin")


def operator_password_hash() -> str:
    configured = env_str("OPERATOR_PASSWORD_HASH", "")
    if configured:
        return configured
    return _hash_default_operator_password(env_str("OPERATOR_PASSWORD", "admin123"))


@lru_cache(maxsize=4)
def _hash_default_operator_password(plain_password: str) -> str:
    return hash_password(plain_password)


def now_epoch_s() -> int:
    return int(time.time())


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


class TokenAuthenticator:
    """
    Issues and verifies signed, time-limited identity tokens.

    Payload: {"sub": <username>, "iat": <issued, epoch s>, "exp": <expiry, epoch s>}
    """

    def __init__(self, *, secret: str, algorithm: str = "HS256", ttl_hours: int = 24) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_s = ttl_hours * 3600

    @classmethod
    def from_env(cls) -> TokenAuthenticator:
        return cls(secret=jwt_secret(), algorithm=jwt_algorithm(), ttl_hours=token_ttl_hours())

    def issue(self, subject: str, *, now: int | None = None) -> str:
        if not self._secret:
            raise AuthSecurityError("Signing key is not configured.")

        issued_at = now if now is not None else now_epoch_s()
        payload = {
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + self._ttl_s,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str | None) -> str:
        """
        Return the token subject, or raise AuthSecurityError.
        """
        raw = (token or "").strip()
        if not raw:
            raise AuthSecurityError("Access token is empty.")

        try:
            payload = jwt.decode(
                raw,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthSecurityError("Access token is expired.") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthSecurityError("Invalid access token.") from exc

        subject = str(payload.get("sub") or "").strip()
        if not subject:
            raise AuthSecurityError("Invalid access token subject.")
        return subject
