from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from resumeforge.api.deps import get_current_user, get_db
from resumeforge.api.schemas import Envelope, RegisterRequest, UpdateUserRequest, UserProfileResponse
from resumeforge.core.auth import AuthService
from resumeforge.db.models import User

router = APIRouter(prefix="/user", tags=["users"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=Envelope[None])
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> Envelope[None]:
    AuthService(db).register(payload.username, payload.password)
    return Envelope(data=None)


@router.get("/profile", response_model=Envelope[UserProfileResponse])
def get_profile(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[UserProfileResponse]:
    profile = AuthService(db).get_profile(user.id)
    return Envelope(data=UserProfileResponse.model_validate(profile))


@router.put("/profile", response_model=Envelope[UserProfileResponse])
def update_profile(
    payload: UpdateUserRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Envelope[UserProfileResponse]:
    values = payload.model_dump(mode="json", exclude_unset=True)
    profile = AuthService(db).update_profile(user.id, values)
    return Envelope(data=UserProfileResponse.model_validate(profile))
