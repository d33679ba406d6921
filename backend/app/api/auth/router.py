from fastapi import APIRouter

from backend.app.core.settings import get_settings

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/ping")
async def auth_ping():
    settings = get_settings()
    return {"status": "ok", "app": settings.app_name, "version": settings.api_version}
