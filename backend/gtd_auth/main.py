"""
Application entry point.

``create_app`` builds the FastAPI application around a ``Container``;
``app`` is the instance served by uvicorn (``uvicorn gtd_auth.main:app``).
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from gtd_auth.api.api import api_router
from gtd_auth.container import Container, build_container
from gtd_auth.core.config import settings
from gtd_auth.core.errors.handlers import register_exception_handlers
from gtd_auth.core.logging.logger import cleanup_logging, get_logger, init_logging
from gtd_auth.db.db import db
from gtd_auth.services.cron_jobs import CronService

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: logging, database connection, expiry sweep scheduling.
    Shutdown: the same in reverse.
    """
    init_logging()
    container: Container = app.state.container
    app.state.start_time = time.time()

    if container.uses_database:
        await db.connect_db()

    cron_service: Optional[CronService] = None
    if settings.cron.SWEEP_ENABLED:
        cron_service = CronService(
            container.maintenance,
            interval_minutes=settings.cron.SWEEP_INTERVAL_MINUTES,
        )
        cron_service.start()
    app.state.cron_service = cron_service

    logger.info(
        "Application startup complete",
        environment=settings.app.ENVIRONMENT.value,
        database=container.uses_database,
    )
    try:
        yield
    finally:
        if cron_service is not None:
            cron_service.stop()
        if container.uses_database:
            await db.close_db()
        logger.info("Application shutdown complete")
        cleanup_logging()


def create_app(container: Optional[Container] = None) -> FastAPI:
    app = FastAPI(
        title=settings.app.PROJECT_NAME,
        version=settings.app.VERSION,
        openapi_url=f"{settings.app.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )
    app.state.container = container or build_container()

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        logger.info(
            "Request completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=round(process_time, 4),
        )
        return response

    if settings.cors.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors.BACKEND_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        current: Container = app.state.container
        if current.uses_database:
            database = await db.health_check()
        else:
            database = {"healthy": True, "backend": "memory"}
        started = getattr(app.state, "start_time", None)
        return {
            "status": "ok" if database.get("healthy") else "degraded",
            "version": settings.app.VERSION,
            "environment": settings.app.ENVIRONMENT.value,
            "database": database,
            "uptime": time.time() - started if started else None,
        }

    app.include_router(api_router, prefix=settings.app.API_PREFIX)
    return app


app = create_app()
