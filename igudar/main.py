"""
IGUDAR Real Estate API — application entry-point.

Builds the FastAPI application: logging, middleware, exception handlers,
routers, and the lifespan that creates tables on startup and disposes of the
connection pool on shutdown.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text

from igudar.api.v1.api import api_router
from igudar.core.config import settings
from igudar.core.exceptions import add_exception_handlers
from igudar.core.logging import setup_logging
from igudar.core.resilience import TRANSIENT_ERRORS, db_circuit_breaker
from igudar.db.session import AsyncSessionLocal, create_tables, engine
from igudar.middleware import RequestIDMiddleware, RequestTimingMiddleware

setup_logging()
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: create tables (retrying while the database boots). If the
    database stays unreachable the app still starts, in degraded mode, and
    ``/health`` reports ``database: false``.

    Shutdown: dispose of the connection pool.
    """
    try:
        await create_tables()
    except TRANSIENT_ERRORS as exc:
        logger.error(
            "Could not reach the database; starting in DEGRADED mode. Last error: %s", exc
        )

    yield

    logger.info("Shutting down; disposing connection pool")
    await engine.dispose()


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=VERSION,
    description=(
        "Fractional real-estate investment API: property listings, "
        "investments and portfolio summaries."
    ),
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Outermost first
app.add_middleware(GZipMiddleware, minimum_size=500)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(RequestTimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Liveness / readiness probe.

    Runs ``SELECT 1`` so a pod that has lost its database reports
    ``degraded``, and includes the database circuit breaker state.
    """
    db_healthy = True
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Health check: database unreachable", exc_info=True)
        db_healthy = False

    return {
        "status": "ok" if db_healthy else "degraded",
        "version": VERSION,
        "database": db_healthy,
        "circuit_breaker": db_circuit_breaker.get_status(),
    }
