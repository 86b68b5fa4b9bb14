from __future__ import annotations

import logging

from fastapi import APIRouter

from app.core.config import settings
from app.services.employee_service import employee_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check():
    services: dict[str, str] = {}
    employee_count: int | None = None

    try:
        if employee_service.initialized:
            ok = await employee_service.check_connection()
            services["cosmos_db"] = "ok" if ok else "error"
            if ok:
                employee_count = await employee_service.count_employees()
        else:
            services["cosmos_db"] = "not_configured"
    except Exception:
        logger.exception("Directory health check failed")
        services["cosmos_db"] = "error"

    all_ok = all(v in ("ok", "not_configured") for v in services.values())

    return {
        "status": "healthy" if all_ok else "degraded",
        "version": settings.APP_VERSION,
        "services": services,
        "active_employees": employee_count,
    }


@router.get("/ready")
async def readiness_check():
    return {"ready": True}
