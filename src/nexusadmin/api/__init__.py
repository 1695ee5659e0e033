"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and auth routers are
open (auth routes gate themselves per endpoint).
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from nexusadmin import __version__
from nexusadmin.api.auth import router as auth_router
from nexusadmin.api.health import router as health_router
from nexusadmin.api.projects import router as projects_router
from nexusadmin.api.users import router as users_router
from nexusadmin.auth.dependencies import get_current_user, require_admin

api_router = APIRouter(prefix="/api")


@api_router.get("", tags=["health"])
async def api_index():
    return {
        "success": True,
        "message": "Welcome to NexusAdmin API",
        "version": __version__,
        "endpoints": {
            "auth": "/api/auth",
            "users": "/api/users",
            "projects": "/api/projects",
            "health": "/api/health",
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# Open routes
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes
api_router.include_router(users_router, tags=["users"], dependencies=[Depends(require_admin)])
api_router.include_router(
    projects_router, tags=["projects"], dependencies=[Depends(get_current_user)]
)
