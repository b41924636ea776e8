from datetime import UTC, datetime

import pytest
from jose import jwt

from resumeforge.config import Settings
from resumeforge.core.security import create_token, decode_token, hash_password, token_lifetime, verify_password
from resumeforge.errors import UnauthorizedError
from resumeforge.types import TokenType


def _settings(**overrides) -> Settings:
    return Settings(secret_key="unit-secret", **overrides)


def test_password_hash_round_trip() -> None:
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("wrong", hashed)


def test_password_bytes_beyond_bcrypt_limit_are_ignored() -> None:
    hashed = hash_password("a" * 72)
    assert verify_password("a" * 72 + "tail", hashed)


def test_verify_password_rejects_malformed_hash() -> None:
    assert not verify_password("anything", "not-a-bcrypt-hash")


def test_token_lifetime_depends_on_type() -> None:
    settings = _settings(jwt_expires_min=5, jwt_refresh_expires_min=60)
    assert token_lifetime(TokenType.ACCESS, settings).total_seconds() == 300
    assert token_lifetime(TokenType.REFRESH, settings).total_seconds() == 3600


def test_created_token_decodes_to_its_claims() -> None:
    settings = _settings()
    token, expires_at = create_token(user_id=7, username="carol", token_type=TokenType.REFRESH, settings=settings)

    payload = decode_token(token, settings)
    assert payload["sub"] == "7"
    assert payload["username"] == "carol"
    assert payload["type"] == "refresh"
    assert expires_at > datetime.now(UTC)


def test_tokens_for_same_user_are_distinct() -> None:
    settings = _settings()
    first, _ = create_token(user_id=1, username="dan", token_type=TokenType.ACCESS, settings=settings)
    second, _ = create_token(user_id=1, username="dan", token_type=TokenType.ACCESS, settings=settings)
    assert first != second


def test_decode_rejects_wrong_secret_and_expired_tokens() -> None:
    token, _ = create_token(user_id=1, username="erin", token_type=TokenType.ACCESS, settings=_settings())
    with pytest.raises(UnauthorizedError):
        decode_token(token, Settings(secret_key="another-secret"))

    expired, _ = create_token(
        user_id=1,
        username="erin",
        token_type=TokenType.ACCESS,
        settings=_settings(jwt_expires_min=-1),
    )
    with pytest.raises(UnauthorizedError):
        decode_token(expired, _settings())


def test_decode_rejects_unexpected_payload() -> None:
    settings = _settings()
    token = jwt.encode({"sub": "abc", "type": "access"}, settings.secret_key, algorithm=settings.jwt_algorithm)
    with pytest.raises(UnauthorizedError):
        decode_token(token, settings)
