"""hrdesk — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hrdesk import __version__
from hrdesk.auth.router import router as auth_router
from hrdesk.auth.tokens import TokenIssuer
from hrdesk.common.exceptions import register_exception_handlers
from hrdesk.common.rate_limit import limiter
from hrdesk.config import Settings, get_settings
from hrdesk.core_hr.router import departments_router, employees_router
from hrdesk.database import Base, build_engine, build_session_factory
from hrdesk.leave.router import router as leave_router
from hrdesk.seed import seed_database

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema (and seed data) on startup; dispose the pool on shutdown."""
    engine = app.state.engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    if app.state.settings.SEED_DATABASE:
        async with app.state.session_factory() as session:
            await seed_database(session)
            await session.commit()

    logger.info("hrdesk %s started (%s)", __version__, app.state.settings.ENVIRONMENT)
    yield
    await engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    *settings* defaults to ``Settings()`` read from the environment; a
    missing ``JWT_SECRET`` fails here, before anything is served.
    """
    settings = settings or Settings()
    configure_logging(settings)

    is_production = settings.ENVIRONMENT == "production"
    app = FastAPI(
        title="hrdesk",
        description="HR records: employees, departments, leave workflow",
        version=__version__,
        docs_url=None if is_production else "/api/docs",
        redoc_url=None if is_production else "/api/redoc",
        lifespan=lifespan,
    )

    # Collaborators built once from settings
    app.state.settings = settings
    app.state.token_issuer = TokenIssuer(settings)
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    limiter.enabled = settings.RATE_LIMIT_ENABLED
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check(current: Settings = Depends(get_settings)):
        return {
            "status": "healthy",
            "version": __version__,
            "environment": current.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(departments_router, prefix="/api/v1/departments", tags=["departments"])
    app.include_router(leave_router, prefix="/api/v1/leave", tags=["leave"])

    return app


app = create_app()
