"""FastAPI application factory.

Learn: App factory pattern. create_app() returns a configured FastAPI
instance. Long-lived collaborators (session factory, token codec,
notifier, services) are built once here and parked on app.state, where
route dependencies pick them up. Tests call create_app() with their own
session factory and a recording notifier instead of patching globals.

Lifespan manages startup/shutdown logging and engine disposal.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from nexusadmin import __version__
from nexusadmin.api import api_router
from nexusadmin.auth.jwt import TokenCodec
from nexusadmin.config import Settings, settings as default_settings
from nexusadmin.errors import register_exception_handlers
from nexusadmin.middleware.request_id import RequestIdMiddleware
from nexusadmin.middleware.security import SecurityHeadersMiddleware
from nexusadmin.services.auth_service import AuthService
from nexusadmin.services.notifier import EmailNotifier, Notifier
from nexusadmin.services.project_service import ProjectService
from nexusadmin.services.user_service import UserService

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown.
    """
    cfg: Settings = app.state.settings
    logger.info(
        "nexusadmin.starting",
        version=__version__,
        environment=cfg.environment,
        port=cfg.port,
        smtp_configured=cfg.smtp_configured,
    )

    yield

    logger.info("nexusadmin.shutdown")
    engine: Optional[AsyncEngine] = app.state.engine
    if engine is not None:
        await engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    cfg = settings or default_settings

    engine: Optional[AsyncEngine] = None
    if session_factory is None:
        from nexusadmin.db.engine import async_session_factory, engine

        session_factory = async_session_factory

    app = FastAPI(
        title="NexusAdmin API",
        description="Role-based admin backend with invite-based onboarding",
        version=__version__,
        lifespan=lifespan,
    )

    codec = TokenCodec.from_settings(cfg)
    notifier = notifier or EmailNotifier(cfg)

    app.state.settings = cfg
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.token_codec = codec
    app.state.auth_service = AuthService(session_factory, codec, notifier, cfg)
    app.state.user_service = UserService(session_factory)
    app.state.project_service = ProjectService(session_factory)

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: nexusadmin.main:app)
app = create_app()
