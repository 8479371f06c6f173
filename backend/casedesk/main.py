"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from casedesk.api.v1 import auth, profiles, reports, users
from casedesk.core.config import settings
from casedesk.core.logging import get_logger, setup_logging
from casedesk.services.case_desk import CaseDesk
from casedesk.storage import build_backend

API_PREFIX = "/api/v1"


def create_app(desk: CaseDesk | None = None) -> FastAPI:
    """Build the application; pass `desk` to serve an already wired CaseDesk."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown lifecycle hooks."""
        setup_logging("DEBUG" if settings.is_development else settings.LOG_LEVEL)
        logger = get_logger("startup")
        if getattr(app.state, "desk", None) is None:
            app.state.desk = CaseDesk(build_backend(settings), settings)
        admin = app.state.desk.bootstrap()
        logger.info("Application starting", env=settings.APP_ENV, admin=admin.username)
        yield
        logger.info("Application shutting down")

    app = FastAPI(
        title="Case Desk API",
        description="Shared case-profile desk with single-viewer locking and approval workflow",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.desk = desk

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(profiles.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(reports.router, prefix=API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Public health-check endpoint."""
        return {"status": "ok", "env": settings.APP_ENV}

    return app


app = create_app()
