"""LeaveDesk: FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

# Models register on Base.metadata before any mapper is configured
import leavedesk.auth.models  # noqa: F401
import leavedesk.common.audit  # noqa: F401
import leavedesk.company.models  # noqa: F401
import leavedesk.leave.models  # noqa: F401
import leavedesk.policies.models  # noqa: F401
import leavedesk.team.models  # noqa: F401
from leavedesk.analytics.router import router as analytics_router
from leavedesk.auth.router import router as auth_router
from leavedesk.auth.router import users_router
from leavedesk.common.exceptions import register_exception_handlers
from leavedesk.common.rate_limit import limiter
from leavedesk.company.router import router as company_router
from leavedesk.config import settings
from leavedesk.database import engine
from leavedesk.leave.router import router as leave_router
from leavedesk.policies.router import router as policies_router
from leavedesk.team.router import router as team_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("LeaveDesk starting (environment=%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    configure_logging()

    app = FastAPI(
        title="LeaveDesk",
        description="Team leave requests, approvals, allowances and analytics",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers ({"error": ...} bodies)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers; policies and analytics before the leave router's paths
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(users_router, prefix="/api/user", tags=["user"])
    app.include_router(team_router, prefix="/api/team", tags=["team"])
    app.include_router(policies_router, prefix="/api/leave/policies", tags=["policies"])
    app.include_router(analytics_router, prefix="/api/leave/analytics", tags=["analytics"])
    app.include_router(leave_router, prefix="/api/leave", tags=["leave"])
    app.include_router(company_router, prefix="/api/company", tags=["company"])

    return app


app = create_app()
