import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from database.connection import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health():
    """Round-trip the database and report latency."""
    started = time.perf_counter()
    try:
        get_db().table("users").select("id").limit(1).execute()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=500, content={"ok": False, "error": "Database unavailable"})
    latency_ms = int((time.perf_counter() - started) * 1000)
    return {"ok": True, "latencyMs": latency_ms}
