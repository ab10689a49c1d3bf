from typing import Annotated

from fastapi import APIRouter, Depends, File, Response, UploadFile

from portal.api.v1.schemas import ProfilePhotoOut
from portal.auth.deps import CurrentPrincipal, DBSession
from portal.core.config import settings
from portal.services.base import parse_uuid
from portal.services.profile_photo_service import ProfilePhotoService
from portal.storage import StorageAdapter, get_profile_photo_storage

router = APIRouter(prefix="/profile-photos", tags=["profile-photos"])

PhotoStorage = Annotated[StorageAdapter, Depends(get_profile_photo_storage)]


def _service(db, storage: StorageAdapter, principal) -> ProfilePhotoService:
    return ProfilePhotoService(db, storage, settings.profile_photo_max_bytes, principal)


@router.post("/me", response_model=ProfilePhotoOut)
def upload_my_photo(
    principal: CurrentPrincipal,
    db: DBSession,
    storage: PhotoStorage,
    file: UploadFile = File(...),
):
    try:
        url = _service(db, storage, principal).upload(
            principal.id, file.filename, file.content_type, file.file
        )
    finally:
        file.file.close()
    return ProfilePhotoOut(user_id=parse_uuid(principal.id, "user"), profile_photo_url=url)


@router.get("/{user_id}", response_model=ProfilePhotoOut)
def get_photo(user_id: str, principal: CurrentPrincipal, db: DBSession, storage: PhotoStorage):
    url = _service(db, storage, principal).get(user_id)
    return ProfilePhotoOut(user_id=parse_uuid(user_id, "user"), profile_photo_url=url)


@router.delete("/me", status_code=204)
def delete_my_photo(principal: CurrentPrincipal, db: DBSession, storage: PhotoStorage):
    _service(db, storage, principal).delete(principal.id)
    return Response(status_code=204)
