from fastapi import APIRouter

from oxbow.api.routes import audio, mirrors, notifications, themes, utils

api_router = APIRouter()
api_router.include_router(utils.router, tags=["utils"])
api_router.include_router(mirrors.router, tags=["mirrors"])
api_router.include_router(audio.router, tags=["audio"])
api_router.include_router(themes.router, tags=["themes"])
api_router.include_router(notifications.router, tags=["notifications"])
