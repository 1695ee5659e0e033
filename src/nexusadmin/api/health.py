"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and the
database is reachable. Open (no auth), so a failed database check is logged in
full and reported to the client only as "error".
"""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text

from nexusadmin import __version__

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with request.app.state.session_factory() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception:
        logger.exception("health.database_failed")
        checks["database"] = "error"

    status = "healthy" if checks["database"] == "ok" else "degraded"

    return {
        "success": True,
        "message": "NexusAdmin API is running",
        "data": {"status": status, **checks},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
