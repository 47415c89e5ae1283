# coursedesk/api/v1/health.py
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from coursedesk.api.deps import get_db
from coursedesk.core.config import Settings
from coursedesk.core.timeutil import to_iso, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

HEALTH_PROBE_KEY = "health-check"


@router.get("/health")
def health(request: Request, db: Session = Depends(get_db)):
    checks = {"api": True, "database": False, "kv": False}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception:
        logger.error("Database health check failed", exc_info=True)

    kv = request.app.state.kv
    try:
        kv.put(HEALTH_PROBE_KEY, {"value": "ok"}, 60)
        checks["kv"] = (kv.get(HEALTH_PROBE_KEY) or {}).get("value") == "ok"
    except Exception:
        logger.error("KV health check failed", exc_info=True)

    healthy = all(checks.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "timestamp": to_iso(utcnow()),
            "version": Settings.VERSION,
            "checks": checks,
        },
    )
