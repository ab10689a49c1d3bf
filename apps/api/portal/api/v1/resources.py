from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from fastapi.responses import StreamingResponse

from portal.api.v1.schemas import CategoriesOut, CategoryCreate, CategoryOut, ResourceOut
from portal.auth.deps import CurrentPrincipal, DBSession, EBoard
from portal.core.config import settings
from portal.services.resource_service import ResourceService
from portal.storage import StorageAdapter, get_resource_storage

router = APIRouter(prefix="/resources", tags=["resources"])

ResourceStorage = Annotated[StorageAdapter, Depends(get_resource_storage)]


def resource_service(db, storage: StorageAdapter, principal) -> ResourceService:
    return ResourceService(db, storage, settings.resource_max_bytes, principal)


def stream_file(fileobj, chunk_size: int = 64 * 1024):
    with fileobj:
        while True:
            chunk = fileobj.read(chunk_size)
            if not chunk:
                break
            yield chunk


@router.get("", response_model=CategoriesOut)
def list_resources(principal: CurrentPrincipal, db: DBSession, storage: ResourceStorage):
    rows = resource_service(db, storage, principal).list_categories()
    items = [
        CategoryOut.model_validate(category).model_copy(
            update={"resources": [ResourceOut.model_validate(r) for r in resources]}
        )
        for category, resources in rows
    ]
    return CategoriesOut(items=items)


@router.post("/add-category", response_model=CategoryOut, status_code=201)
def add_category(payload: CategoryCreate, principal: EBoard, db: DBSession, storage: ResourceStorage):
    return resource_service(db, storage, principal).add_category(payload.model_dump(exclude_unset=True))


@router.delete("/{category_id}", status_code=204)
def delete_category(category_id: str, principal: EBoard, db: DBSession, storage: ResourceStorage):
    resource_service(db, storage, principal).delete_category(category_id)
    return Response(status_code=204)


@router.post("/{category_id}/resources", response_model=ResourceOut, status_code=201)
def upload_resource(
    category_id: str,
    principal: EBoard,
    db: DBSession,
    storage: ResourceStorage,
    file: UploadFile = File(...),
    name: str | None = Form(default=None),
    description: str | None = Form(default=None),
):
    try:
        return resource_service(db, storage, principal).upload(
            name,
            file.filename,
            file.content_type,
            file.file,
            uploaded_by=principal.id,
            description=description,
            category_id=category_id,
        )
    finally:
        file.file.close()


@router.delete("/{category_id}/resources/{resource_id}", status_code=204)
def delete_resource(
    category_id: str,
    resource_id: str,
    principal: EBoard,
    db: DBSession,
    storage: ResourceStorage,
):
    resource_service(db, storage, principal).delete(resource_id, category_id=category_id)
    return Response(status_code=204)


@router.get("/files/{resource_id}")
def download_resource(resource_id: str, principal: CurrentPrincipal, db: DBSession, storage: ResourceStorage):
    record, fileobj = resource_service(db, storage, principal).open(resource_id)
    return StreamingResponse(
        stream_file(fileobj),
        media_type=record.mime_type or "application/octet-stream",
    )
