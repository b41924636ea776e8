from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from resumeforge.config import Settings, get_settings
from resumeforge.errors import UnauthorizedError
from resumeforge.types import TokenType

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def token_lifetime(token_type: TokenType, settings: Settings | None = None) -> timedelta:
    settings = settings or get_settings()
    if token_type == TokenType.REFRESH:
        return timedelta(minutes=settings.jwt_refresh_expires_min)
    return timedelta(minutes=settings.jwt_expires_min)


def create_token(
    *,
    user_id: int,
    username: str,
    token_type: TokenType,
    settings: Settings | None = None,
) -> tuple[str, datetime]:
    """Sign a JWT for ``user_id`` and return it with its expiry."""
    settings = settings or get_settings()
    expires_at = datetime.now(UTC) + token_lifetime(token_type, settings)
    payload = {
        "sub": str(user_id),
        "username": username,
        "type": token_type.value,
        "jti": uuid.uuid4().hex,
        "exp": expires_at,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        logger.warning("Token verification failed: %s", exc)
        raise UnauthorizedError("invalid or expired token") from exc

    if not str(payload.get("sub", "")).isdigit() or payload.get("type") not in {t.value for t in TokenType}:
        raise UnauthorizedError("invalid token payload")
    return payload
