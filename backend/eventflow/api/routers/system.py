# eventflow/api/routers/system.py
import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from eventflow.config import settings
from eventflow.core.audit import audit_writer
from eventflow.core.bootstrap import DEMO_EMAIL, ensure_demo_data
from eventflow.core.db import ping_db
from eventflow.core.errors import NotFound
from eventflow.services.events import utc_now

router = APIRouter(tags=["system"])
logger = logging.getLogger("uvicorn.error")


@router.get("/health")
async def health():
    """
    Liveness of the API and its database, plus audit writer counters
    (running / pending / written / failed) for monitoring the audit
    write-failure rate. 503 when the database can't be reached.
    """
    body = {
        "service": settings.APP_NAME,
        "env": settings.env,
        "timestamp": utc_now().isoformat(),
        "audit": audit_writer.stats(),
    }
    try:
        await ping_db()
    except Exception:
        logger.exception("[health] database ping failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"success": False, "status": "unhealthy", "database": "disconnected", **body},
        )
    return {"success": True, "status": "ok", "database": "connected", **body}


@router.post("/api/init-demo")
async def init_demo():
    """
    Seed the demo account and its sample events.

    Returns:
        dict: Response containing:
            - success: bool (always True)
            - email: Demo account email

    Raises:
        NotFound (404): If demo seeding is not configured (DEMO_PASSWORD unset)
    """
    user = await ensure_demo_data()
    if user is None:
        raise NotFound("Demo data is not enabled", code="DEMO_DISABLED")
    return {"success": True, "message": "Demo data ready", "email": DEMO_EMAIL}
