from fastapi import APIRouter

from portal.api.v1.announcements import router as announcements_router
from portal.api.v1.auth import router as auth_router
from portal.api.v1.events import router as events_router
from portal.api.v1.me import router as me_router
from portal.api.v1.member_info import router as member_info_router
from portal.api.v1.profile_photos import router as profile_photos_router
from portal.api.v1.resources import router as resources_router
from portal.api.v1.roles import router as roles_router
from portal.api.v1.sponsors import router as sponsors_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(me_router)
router.include_router(events_router)
router.include_router(announcements_router)
router.include_router(member_info_router)
router.include_router(roles_router)
router.include_router(profile_photos_router)
router.include_router(sponsors_router)
router.include_router(resources_router)
