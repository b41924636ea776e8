from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from resumeforge.config import Settings, get_settings
from resumeforge.core.security import create_token, decode_token, hash_password, verify_password
from resumeforge.db.models import User
from resumeforge.db.repositories import TokenRepository, UserRepository
from resumeforge.errors import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from resumeforge.types import TokenType

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "invalid username or password"


@dataclass
class LoginResult:
    access_token: str
    refresh_token: str
    user_id: int
    username: str


class AuthService:
    def __init__(self, session: Session, *, settings: Settings | None = None):
        self.session = session
        self.settings = settings or get_settings()
        self.users = UserRepository(session)
        self.tokens = TokenRepository(session)

    def register(self, username: str, password: str) -> User:
        if self.users.get_by_username(username) is not None:
            raise ConflictError("username already exists")
        try:
            user = self.users.create_user(username=username, password_hash=hash_password(password))
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError("username already exists") from exc
        logger.info("Registered user id=%s", user.id)
        return user

    def login(self, username: str, password: str) -> LoginResult:
        user = self.users.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Rejected login for username=%s", username)
            raise BadRequestError(INVALID_CREDENTIALS)

        return LoginResult(
            access_token=self._issue(user, TokenType.ACCESS),
            refresh_token=self._issue(user, TokenType.REFRESH),
            user_id=user.id,
            username=user.username,
        )

    def refresh(self, refresh_token: str) -> str:
        payload = decode_token(refresh_token, self.settings)
        if payload["type"] != TokenType.REFRESH.value:
            raise UnauthorizedError("refresh token is invalid or expired")
        stored = self.tokens.get_active_token(refresh_token, TokenType.REFRESH)
        if stored is None:
            raise UnauthorizedError("refresh token is invalid or expired")
        user = self.users.get_user(stored.user_id)
        if user is None:
            raise UnauthorizedError("refresh token is invalid or expired")
        return self._issue(user, TokenType.ACCESS)

    def authenticate(self, access_token: str) -> User:
        """Resolve a bearer access token to its user."""
        payload = decode_token(access_token, self.settings)
        if payload["type"] != TokenType.ACCESS.value:
            raise UnauthorizedError("access token required")
        if self.tokens.is_revoked(access_token):
            raise UnauthorizedError("token has been revoked")
        user = self.users.get_user(int(payload["sub"]))
        if user is None:
            raise UnauthorizedError("user does not exist")
        return user

    def logout(self, access_token: str, refresh_token: str | None = None) -> bool:
        revoked = self.tokens.revoke_token(access_token)
        if refresh_token:
            revoked += self.tokens.revoke_token(refresh_token)
        return revoked > 0

    def logout_all(self, user_id: int) -> bool:
        return self.tokens.revoke_user_tokens(user_id) > 0

    def get_profile(self, user_id: int) -> User:
        user = self.users.get_user(user_id)
        if user is None:
            raise NotFoundError("user does not exist")
        return user

    def update_profile(self, user_id: int, values: dict) -> User:
        user = self.get_profile(user_id)
        return self.users.update_user(user, values)

    def clean_expired_tokens(self) -> int:
        removed = self.tokens.delete_expired()
        logger.info("Removed %s expired tokens", removed)
        return removed

    def _issue(self, user: User, token_type: TokenType) -> str:
        token, expires_at = create_token(
            user_id=user.id,
            username=user.username,
            token_type=token_type,
            settings=self.settings,
        )
        self.tokens.save_token(user_id=user.id, token=token, token_type=token_type, expires_at=expires_at)
        return token
