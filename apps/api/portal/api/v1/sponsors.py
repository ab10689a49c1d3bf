from fastapi import APIRouter, File, Form, Response, UploadFile

from portal.api.v1.resources import ResourceStorage, resource_service
from portal.api.v1.schemas import (
    ResourceOut,
    ResourcesOut,
    SponsorCreate,
    SponsorNamesOut,
    SponsorOut,
    SponsorUpdate,
)
from portal.auth.deps import CurrentPrincipal, DBSession, EBoard, Sponsor
from portal.services.exceptions import ForbiddenError
from portal.services.sponsor_service import SponsorService

router = APIRouter(prefix="/sponsors", tags=["sponsors"])


def _own_company(principal, company_name: str | None = None) -> str:
    if principal.role is None or not principal.role.company_name:
        raise ForbiddenError("token carries no sponsor company")
    if company_name is not None and company_name.strip() != principal.role.company_name:
        raise ForbiddenError("sponsors may only manage their own resources")
    return principal.role.company_name


@router.get("/names", response_model=SponsorNamesOut)
def sponsor_names(db: DBSession):
    return SponsorNamesOut(names=SponsorService(db).list_names())


@router.post("", response_model=SponsorOut, status_code=201)
def create_sponsor(payload: SponsorCreate, principal: EBoard, db: DBSession):
    return SponsorService(db, principal).add(payload.model_dump())


@router.patch("/me", response_model=SponsorOut)
def update_my_sponsor(payload: SponsorUpdate, principal: Sponsor, db: DBSession):
    service = SponsorService(db, principal)
    sponsor = service.get_by_company(_own_company(principal))
    return service.edit(sponsor.id, payload.model_dump(exclude_unset=True))


@router.get("/{company_name}/resources", response_model=ResourcesOut)
def sponsor_resources(company_name: str, principal: CurrentPrincipal, db: DBSession, storage: ResourceStorage):
    sponsor = SponsorService(db, principal).get_by_company(company_name)
    records = resource_service(db, storage, principal).list_for_sponsor(sponsor.id)
    return ResourcesOut(items=[ResourceOut.model_validate(r) for r in records])


@router.post("/{company_name}/resources", response_model=ResourceOut, status_code=201)
def upload_sponsor_resource(
    company_name: str,
    principal: Sponsor,
    db: DBSession,
    storage: ResourceStorage,
    file: UploadFile = File(...),
    name: str | None = Form(default=None),
    description: str | None = Form(default=None),
):
    try:
        sponsor = SponsorService(db, principal).get_by_company(_own_company(principal, company_name))
        return resource_service(db, storage, principal).upload(
            name,
            file.filename,
            file.content_type,
            file.file,
            uploaded_by=principal.id,
            description=description,
            sponsor_id=sponsor.id,
        )
    finally:
        file.file.close()


@router.delete("/{company_name}/resources/{resource_id}", status_code=204)
def delete_sponsor_resource(
    company_name: str,
    resource_id: str,
    principal: Sponsor,
    db: DBSession,
    storage: ResourceStorage,
):
    sponsor = SponsorService(db, principal).get_by_company(_own_company(principal, company_name))
    resource_service(db, storage, principal).delete(resource_id, sponsor_id=sponsor.id)
    return Response(status_code=204)
