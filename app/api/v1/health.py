import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.db import store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check():
    try:
        store.ping()
    except Exception as exc:  # noqa: BLE001
        logger.warning("health_check_db_failed: %s", exc)
        return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unavailable"})
    return {"status": "healthy", "database": "ok"}
