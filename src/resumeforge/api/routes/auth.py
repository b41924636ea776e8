from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from resumeforge.api.deps import get_bearer_token, get_current_user, get_db, get_optional_user
from resumeforge.api.schemas import (
    Envelope,
    LoginRequest,
    LoginResponse,
    LogoutRequest,
    RefreshRequest,
    RefreshResponse,
    SuccessResponse,
    UserProfileResponse,
)
from resumeforge.core.auth import AuthService
from resumeforge.db.models import User

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Envelope[LoginResponse])
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> Envelope[LoginResponse]:
    result = AuthService(db).login(payload.username, payload.password)
    return Envelope(data=LoginResponse.model_validate(result))


@router.post("/refresh", response_model=Envelope[RefreshResponse])
def refresh(payload: RefreshRequest, db: Session = Depends(get_db)) -> Envelope[RefreshResponse]:
    access_token = AuthService(db).refresh(payload.refresh_token)
    return Envelope(data=RefreshResponse(access_token=access_token))


@router.post("/logout", response_model=Envelope[SuccessResponse])
def logout(
    payload: LogoutRequest | None = Body(default=None),
    _user: User = Depends(get_current_user),
    token: str | None = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> Envelope[SuccessResponse]:
    refresh_token = payload.refresh_token if payload else None
    success = AuthService(db).logout(token or "", refresh_token)
    return Envelope(data=SuccessResponse(success=success))


@router.post("/logout-all", response_model=Envelope[SuccessResponse])
def logout_all(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[SuccessResponse]:
    success = AuthService(db).logout_all(user.id)
    return Envelope(data=SuccessResponse(success=success))


@router.get("/profile", response_model=Envelope[UserProfileResponse])
def profile(user: User | None = Depends(get_optional_user)) -> Envelope[UserProfileResponse]:
    if user is None:
        return Envelope(data=None)
    return Envelope(data=UserProfileResponse.model_validate(user))
