from fastapi import APIRouter

from portal.api.v1.schemas import AccessOut, FeaturesOut
from portal.auth.deps import CurrentPrincipal, DBSession
from portal.auth.features import Feature, can_access_feature
from portal.navigation.guard import evaluate_navigation
from portal.navigation.session import AuthSnapshot
from portal.services.member_info_service import MemberInfoService
from portal.services.user_role_service import UserRoleService

router = APIRouter(prefix="/me", tags=["me"])


@router.get("/access", response_model=AccessOut)
def access(path: str, principal: CurrentPrincipal, db: DBSession):
    roles = tuple(UserRoleService(db).get_roles(principal.id))
    snapshot = AuthSnapshot(session=principal.claims, roles=roles, loading=False)
    decision = evaluate_navigation(snapshot, path)
    return AccessOut(
        path=path,
        decision=decision.kind.value,
        redirect_to=decision.redirect_to,
        required_role=decision.required_role,
    )


@router.get("/features", response_model=FeaturesOut)
def features(principal: CurrentPrincipal, db: DBSession):
    info = MemberInfoService(db, principal).find(principal.id)
    rank = info.rank if info else None
    archived = info is not None and info.archived_at is not None
    return FeaturesOut(
        rank=rank,
        archived=archived,
        features={
            feature.value: not archived and can_access_feature(rank, feature)
            for feature in Feature
        },
    )
