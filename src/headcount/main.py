"""Main entry point for the headcount application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from headcount.api import members_router, usercount_router
from headcount.api.dependencies import SessionDep
from headcount.api.errors import register_exception_handlers
from headcount.core.logging import configure_logging
from headcount.core.settings import settings
from headcount.db.session import SessionLocal, check_database, engine
from headcount.db.time import utcnow
from headcount.services.reconciler import ReconcileWorker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Verify the database, run the reconcile worker, and release the pool on exit."""
    configure_logging(settings.effective_log_level)

    with SessionLocal() as db:
        database = check_database(db)
    if database["connected"]:
        logger.info("Database connected successfully")
    else:
        logger.error("Database is unreachable; /api/usercount will answer 503 until it recovers")

    worker = ReconcileWorker()
    await worker.start()
    app.state.reconcile_worker = worker
    logger.info("User count API available at /api/usercount")
    try:
        yield
    finally:
        await worker.stop()
        engine.dispose()
        logger.info("Database connection closed")


# Initialize FastAPI app
app = FastAPI(
    title="headcount",
    description="Live user count backed by an incrementally maintained counter",
    version=settings.app_version,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(usercount_router, prefix="/api")
app.include_router(members_router, prefix="/api")


@app.get("/health")
def health_check(db: SessionDep) -> JSONResponse:
    """Health check endpoint reporting database connectivity."""
    database = check_database(db)
    healthy = database["status"] == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": utcnow().isoformat(),
            "database": database,
        },
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "usercount": "/api/usercount",
        "health": "/health",
        "docs": "/docs",
    }


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    configure_logging(settings.effective_log_level)
    uvicorn.run(
        "headcount.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.effective_log_level.lower(),
    )


if __name__ == "__main__":
    run()
