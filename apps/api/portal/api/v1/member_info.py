from fastapi import APIRouter, Query, Response

from portal.api.v1.schemas import (
    MemberInfoAdminUpdate,
    MemberInfoCreate,
    MemberInfoOut,
    MemberInfoUpdate,
    MemberSearchHit,
    MemberSearchOut,
)
from portal.auth.deps import CurrentPrincipal, DBSession, EBoard
from portal.services.member_info_service import MemberAdminService, MemberInfoService

router = APIRouter(prefix="/member-info", tags=["member-info"])


def _hits(rows) -> MemberSearchOut:
    items = [
        MemberSearchHit.model_validate(info).model_copy(update={"email": email})
        for info, email in rows
    ]
    return MemberSearchOut(items=items)


@router.get("/me", response_model=MemberInfoOut)
def my_member_info(principal: CurrentPrincipal, db: DBSession):
    return MemberInfoService(db, principal).get_or_create(principal.id)


@router.patch("/me", response_model=MemberInfoOut)
def update_my_member_info(payload: MemberInfoUpdate, principal: CurrentPrincipal, db: DBSession):
    return MemberInfoService(db, principal).update_own(
        principal.id, payload.model_dump(exclude_unset=True)
    )


@router.get("/search", response_model=MemberSearchOut)
def search_members(
    principal: CurrentPrincipal,
    db: DBSession,
    q: str = Query(default=""),
    limit: int = Query(default=50, ge=1, le=200),
):
    return _hits(MemberInfoService(db, principal).search(q, limit=limit))


@router.get("/archived", response_model=MemberSearchOut)
def archived_members(principal: EBoard, db: DBSession):
    return _hits(MemberInfoService(db, principal).list_archived())


@router.get("/{user_id}", response_model=MemberInfoOut)
def get_member_info(user_id: str, principal: CurrentPrincipal, db: DBSession):
    return MemberInfoService(db, principal).get_by_id(user_id)


@router.post("", response_model=MemberInfoOut, status_code=201)
def create_member_info(payload: MemberInfoCreate, principal: EBoard, db: DBSession):
    return MemberInfoService(db, principal).add(payload.model_dump(exclude_unset=True))


@router.patch("/{user_id}", response_model=MemberInfoOut)
def update_member_info(user_id: str, payload: MemberInfoAdminUpdate, principal: EBoard, db: DBSession):
    return MemberAdminService(db, principal).edit(user_id, payload.model_dump(exclude_unset=True))


@router.post("/{user_id}/archive", response_model=MemberInfoOut)
def archive_member(user_id: str, principal: EBoard, db: DBSession):
    return MemberInfoService(db, principal).archive(user_id)


@router.post("/{user_id}/restore", response_model=MemberInfoOut)
def restore_member(user_id: str, principal: EBoard, db: DBSession):
    return MemberInfoService(db, principal).restore(user_id)


@router.delete("/{user_id}", status_code=204)
def delete_member_info(user_id: str, principal: EBoard, db: DBSession):
    MemberInfoService(db, principal).delete(user_id)
    return Response(status_code=204)
