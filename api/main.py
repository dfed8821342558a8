from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.errors import ApiError, api_error_handler, http_exception_handler, unhandled_error_handler
from api.routes import get_api_router
from api.routes import root as root_routes
from veryfiable import SERVICE_DESCRIPTION, SERVICE_NAME, __version__
from veryfiable.core.config import Config, load_config

logger = logging.getLogger(__name__)


def create_app(config: Config | None = None) -> FastAPI:
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = time.monotonic()

        from veryfiable.core.database import Database

        created_db = False
        if getattr(app.state, "db", None) is None:
            app.state.db = Database(app.state.config.database)
            await app.state.db.open()
            created_db = True

        logger.info("%s v%s started (environment: %s)", SERVICE_NAME, __version__, config.api.environment)
        logger.info("Health check: http://%s:%d/api/v1/health", config.api.host, config.api.port)

        yield

        logger.info("Shutdown signal received: closing HTTP server")
        if created_db:
            await app.state.db.close()
        logger.info("HTTP server closed")

    openapi_tags = [
        {"name": "health", "description": "Liveness, database connectivity, and version metadata."},
        {"name": "meta", "description": "Service descriptor."},
    ]

    app = FastAPI(
        title=SERVICE_NAME,
        description=SERVICE_DESCRIPTION,
        version=__version__,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    if config.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api.cors_origins,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Content-Type", "Authorization"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.monotonic()
        status = 500  # unless call_next returns a response
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            elapsed_ms = (time.monotonic() - start) * 1000
            logger.info("%s %s %d %.1f ms", request.method, request.url.path, status, elapsed_ms)

    app.include_router(root_routes.router, tags=["meta"])
    app.include_router(get_api_router(), prefix="/api/v1")
    return app


# Module-level app for uvicorn (e.g. `uvicorn api.main:app`).
app = create_app()
