# app/api/health.py

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.core.config import Settings, get_settings
from app.db.engine import check_database

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check(settings: Settings = Depends(get_settings)) -> dict:
    """
    Liveness plus a best-effort database probe. Never fails.
    """
    has_db = bool(settings.database_url)
    return {
        "ok": True,
        "worker": settings.app_name,
        "time": datetime.now(timezone.utc).isoformat(),
        "hasDB": has_db,
        "dbTest": check_database(settings.database_url) if has_db else None,
        "hasAssets": bool(settings.assets_dir),
    }
