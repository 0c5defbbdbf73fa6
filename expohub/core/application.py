"""
Application builder.
Each concern (middlewares, routes, lifespan, error handlers) is added in its own step.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from expohub.core.ai import AIIntegrationError
from expohub.core.config import settings
from expohub.core.logging import api_logger, app_logger, init_app_logging
from expohub.infra.db import DatabaseNotConfiguredError, dispose_engine, health_check, is_configured
from expohub.routers import ai, dashboard, exporters, health


class ApplicationBuilder:
    """Builder for FastAPI application with separated concerns."""

    def __init__(self):
        self.app = FastAPI(
            title=settings.APP_NAME,
            version="1.0.0",
            description="Chilean fruit export analytics: exporter KPIs, charts and a natural-language assistant",
            docs_url="/docs",
            redoc_url="/redoc",
        )
        self._middlewares_added = False
        self._routes_added = False
        self._startup_handlers_added = False

    def add_cors_middleware(self) -> ApplicationBuilder:
        """Add CORS middleware configuration."""
        if self._middlewares_added:
            raise RuntimeError("Middlewares already added")

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS_LIST or ["http://localhost:3000"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        app_logger.debug("CORS middleware added")
        return self

    def add_request_logging_middleware(self) -> ApplicationBuilder:
        """Add request logging middleware."""
        if self._middlewares_added:
            raise RuntimeError("Middlewares already added")

        @self.app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            api_logger.info(
                "Request handled",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return response

        return self

    def finalize_middlewares(self) -> ApplicationBuilder:
        """Mark middlewares as finalized."""
        self._middlewares_added = True
        return self

    def add_routes(self) -> ApplicationBuilder:
        """Add all API routes."""
        if self._routes_added:
            raise RuntimeError("Routes already added")

        self.app.include_router(health.router)
        self.app.include_router(exporters.router)
        self.app.include_router(dashboard.router)
        self.app.include_router(ai.router)

        @self.app.get("/")
        def root():
            return {
                "name": settings.APP_NAME,
                "env": settings.ENV,
                "docs": "/docs",
                "healthz": "/healthz",
                "readyz": "/readyz",
            }

        self._routes_added = True
        return self

    def add_startup_handlers(self) -> ApplicationBuilder:
        """Add startup and shutdown event handlers."""
        if self._startup_handlers_added:
            raise RuntimeError("Startup handlers already added")

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            app_logger.info("Starting application...", env=settings.ENV)
            # sem banco o processo sobe igual; as rotas de dados respondem 503
            if not is_configured():
                app_logger.warning("DATABASE_URL not configured; data routes will answer 503")
            else:
                try:
                    info = health_check()
                    app_logger.info("Database connection validated", database=info.get("database"))
                except SQLAlchemyError as exc:
                    app_logger.warning("Database did not answer at startup", exc=exc)
            if not settings.ai_configured:
                app_logger.warning("GOOGLE_API_KEY not configured; assistant uses keyword routing only")
            yield
            app_logger.info("Shutting down application...")
            dispose_engine()

        self.app.router.lifespan_context = lifespan
        self._startup_handlers_added = True
        return self

    def add_exception_handlers(self) -> ApplicationBuilder:
        """Add global exception handlers."""

        @self.app.exception_handler(DatabaseNotConfiguredError)
        async def database_not_configured_handler(request: Request, exc: DatabaseNotConfiguredError):
            return JSONResponse(status_code=503, content={"error": str(exc)})

        @self.app.exception_handler(AIIntegrationError)
        async def ai_error_handler(request: Request, exc: AIIntegrationError):
            app_logger.error("AI integration error", exc=exc, path=request.url.path)
            return JSONResponse(status_code=503, content={"error": str(exc)})

        @self.app.exception_handler(Exception)
        async def internal_error_handler(request: Request, exc: Exception):
            app_logger.error(f"Internal error: {exc}", exc=exc, path=request.url.path)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error"},
            )

        return self

    def build(self) -> FastAPI:
        """Build and return the configured FastAPI application."""
        if not self._middlewares_added:
            raise RuntimeError("Middlewares not finalized")
        if not self._routes_added:
            raise RuntimeError("Routes not added")
        if not self._startup_handlers_added:
            raise RuntimeError("Startup handlers not added")

        app_logger.info("FastAPI application built successfully")
        return self.app


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application using the builder pattern.
    """
    init_app_logging()

    builder = (
        ApplicationBuilder()
        .add_cors_middleware()
        .add_request_logging_middleware()
        .finalize_middlewares()
        .add_routes()
        .add_startup_handlers()
        .add_exception_handlers()
    )

    return builder.build()
