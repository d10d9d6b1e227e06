from fastapi import APIRouter

from wallify.api.v1.assets import router as assets_router
from wallify.api.v1.playlist import router as playlist_router
from wallify.api.v1.schedule import router as schedule_router

router = APIRouter()
router.include_router(playlist_router)
router.include_router(assets_router)
router.include_router(schedule_router)
