from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from resumeforge.core.auth import AuthService
from resumeforge.db.models import User
from resumeforge.db.session import get_db_session
from resumeforge.errors import UnauthorizedError

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    yield from get_db_session()


def get_bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    return credentials.credentials


def get_current_user(
    token: str | None = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise UnauthorizedError("missing bearer token")
    return AuthService(db).authenticate(token)


def get_optional_user(
    token: str | None = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User | None:
    if not token:
        return None
    return AuthService(db).authenticate(token)
