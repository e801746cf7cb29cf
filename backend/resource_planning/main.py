from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from resource_planning.api.routes import health
from resource_planning.core.config import Settings, get_settings
from resource_planning.core.errors import register_exception_handlers
from resource_planning.core.logging import configure_logging, get_logger
from resource_planning.core.monitoring import configure_error_monitoring
from resource_planning.core.observability import configure_observability
from resource_planning.db.session import Database
from resource_planning.domains.employees.router import router as employee_router
from resource_planning.domains.planning.router import router as planning_router
from resource_planning.domains.projects.router import router as project_router
from resource_planning.domains.time_entries.router import router as time_router

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """Build the API. ``database`` is created from settings on startup unless given."""
    settings = settings or get_settings()
    configure_logging(settings)
    configure_observability(settings)
    configure_error_monitoring(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.database_url)
        if settings.create_schema:
            db.create_all()
        app.state.database = db
        logger.info("startup_complete", env=settings.env)
        try:
            yield
        finally:
            if database is None:
                db.dispose()
            logger.info("shutdown_complete")

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin).rstrip("/") for origin in settings.cors_origins] or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(employee_router)
    app.include_router(project_router)
    app.include_router(planning_router)
    app.include_router(time_router)

    @app.get("/")
    def root() -> dict[str, str]:
        return {"message": "Resource planning API running", "environment": settings.env}

    return app
