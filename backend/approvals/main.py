"""
FastAPI application entry point.
Hosts the approvals services for an HTTP layer mounted on top: lifespan
handlers, the DI container and exception handlers. Routers are added by the host.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI

from approvals.core.config import settings
from approvals.core.exceptions import setup_exception_handlers
from approvals.core.logging import setup_logging
from approvals.db.session import init_db, close_db
from approvals.deps.di_container import create_container


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    Initializes logging, the database and the DI container.
    """
    # Startup
    setup_logging()
    await init_db()

    container = create_container()
    app.state.container = container

    # Initialize global container instance
    import approvals.deps.di_container as di_module
    di_module._container = container

    yield

    # Shutdown
    if settings.ORG_CHART_SOURCE == "graph":
        await container.graph_org_chart().close()
    await close_db()
    di_module._container = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Timesheet approval delegation and entitlement API",
        lifespan=lifespan,
    )

    setup_exception_handlers(app)

    return app
