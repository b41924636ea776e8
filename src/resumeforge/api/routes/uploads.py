from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile

from resumeforge.api.deps import get_current_user
from resumeforge.api.schemas import Envelope, UploadResponse
from resumeforge.core.uploads import UploadStore
from resumeforge.db.models import User

router = APIRouter(prefix="/upload", tags=["uploads"])


@router.post("", response_model=Envelope[UploadResponse])
def upload_file(
    file: UploadFile = File(...),
    _user: User = Depends(get_current_user),
) -> Envelope[UploadResponse]:
    store = UploadStore()
    stored = store.save(
        content=store.read(file.file),
        original_name=file.filename or "",
        content_type=file.content_type,
    )
    return Envelope(data=UploadResponse.model_validate(stored))
