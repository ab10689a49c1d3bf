from fastapi import APIRouter

from portal.api.v1.schemas import (
    AssignRoleIn,
    ChangedOut,
    RemoveRoleIn,
    RoleOut,
    RolesOut,
    RoleUserOut,
    RoleUsersOut,
)
from portal.auth.deps import CurrentPrincipal, DBSession, EBoard
from portal.auth.principal import Role
from portal.services.user_role_service import UserRoleService, parse_role_name

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("/me", response_model=RolesOut)
def my_roles(principal: CurrentPrincipal, db: DBSession):
    roles = UserRoleService(db, principal).get_roles(principal.id)
    return RolesOut(
        user_id=principal.id,
        roles=[RoleOut(role=r.name, company_name=r.company_name) for r in roles],
    )


@router.get("/{role}/users", response_model=RoleUsersOut)
def users_with_role(role: str, principal: EBoard, db: DBSession):
    name = parse_role_name(role)
    rows = UserRoleService(db, principal).list_users_with_role(name)
    return RoleUsersOut(
        role=name,
        items=[
            RoleUserOut(
                user_id=user.id,
                email=user.email,
                name=user.name,
                company_name=row.company_name,
            )
            for user, row in rows
        ],
    )


@router.post("/assign", response_model=ChangedOut)
def assign_role(payload: AssignRoleIn, principal: EBoard, db: DBSession):
    role = Role(payload.role, payload.company_name)
    return ChangedOut(changed=UserRoleService(db, principal).assign_role(payload.user_id, role))


@router.post("/remove", response_model=ChangedOut)
def remove_role(payload: RemoveRoleIn, principal: EBoard, db: DBSession):
    return ChangedOut(
        changed=UserRoleService(db, principal).remove_role(payload.user_id, payload.role)
    )
