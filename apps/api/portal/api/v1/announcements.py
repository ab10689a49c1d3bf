from fastapi import APIRouter, Response

from portal.api.v1.schemas import AnnouncementCreate, AnnouncementOut, AnnouncementUpdate
from portal.auth.deps import AnnouncementReader, DBSession, EBoard
from portal.services.announcements_service import AnnouncementService

router = APIRouter(prefix="/announcements", tags=["announcements"])


@router.get("", response_model=list[AnnouncementOut])
def list_announcements(principal: AnnouncementReader, db: DBSession):
    return [AnnouncementOut.from_model(a) for a in AnnouncementService(db, principal).list()]


@router.get("/{announcement_id}", response_model=AnnouncementOut)
def get_announcement(announcement_id: str, principal: AnnouncementReader, db: DBSession):
    return AnnouncementOut.from_model(AnnouncementService(db, principal).get_by_id(announcement_id))


@router.post("", response_model=AnnouncementOut, status_code=201)
def create_announcement(payload: AnnouncementCreate, principal: EBoard, db: DBSession):
    fields = payload.model_dump(exclude_unset=True)
    fields["created_by"] = principal.id
    return AnnouncementOut.from_model(AnnouncementService(db, principal).add(fields))


@router.patch("/{announcement_id}", response_model=AnnouncementOut)
def update_announcement(
    announcement_id: str,
    payload: AnnouncementUpdate,
    principal: EBoard,
    db: DBSession,
):
    service = AnnouncementService(db, principal)
    return AnnouncementOut.from_model(
        service.edit(announcement_id, payload.model_dump(exclude_unset=True))
    )


@router.delete("/{announcement_id}", status_code=204)
def delete_announcement(announcement_id: str, principal: EBoard, db: DBSession):
    AnnouncementService(db, principal).delete(announcement_id)
    return Response(status_code=204)
