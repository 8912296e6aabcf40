"""
FastAPI application entry point.
Assembles the app with routers, lifespan handlers, and exception handlers.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from billing_engine.api.v1.endpoints.health import get_health
from billing_engine.api.v1.router import api_router
from billing_engine.core.config import settings
from billing_engine.core.exceptions import setup_exception_handlers
from billing_engine.core.logging import setup_logging
from billing_engine.db.session import init_db, close_db
from billing_engine.schemas.health import HealthResponse


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    setup_logging()
    await init_db()

    yield

    # Shutdown
    await close_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Quote and invoice lifecycle engine",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Root-level health endpoint for load balancers
    app.add_api_route("/health", get_health, response_model=HealthResponse, include_in_schema=False)

    setup_exception_handlers(app)

    return app


app = create_app()
