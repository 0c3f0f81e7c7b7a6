"""
FastAPI application entry point for the KJV Sentinel API.
Configures the application, middleware, routes, and error handlers.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict
from urllib.parse import urlparse

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from sentinel.config import get_settings
from sentinel.db.database import init_db
from sentinel.routers import reports, teaching_reports
from sentinel.utils.errors import SentinelError
from sentinel.utils.logger import ensure_correlation_id, set_correlation_id, setup_logging

# Initialize settings and logging
settings = get_settings()
logger = setup_logging(settings.log_level)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("Starting KJV Sentinel API", version=API_VERSION,
                report_store_backend=settings.report_store_backend)

    os.makedirs(settings.audio_storage_path, exist_ok=True)

    if settings.report_store_backend.lower() == "database":
        try:
            init_db()
            logger.info("Database initialization completed")
        except Exception as e:
            logger.error("Database initialization failed", error=str(e))
            raise

    yield

    logger.info("Shutting down KJV Sentinel API")


app = FastAPI(
    title="KJV Sentinel API",
    description="Scriptural analysis of teachings and content against the KJV 1611",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next) -> Response:
    """Add correlation ID to all requests for tracing."""
    correlation_id = set_correlation_id(request.headers.get("X-Correlation-ID"))

    logger.info("Request started",
                method=request.method,
                url=str(request.url),
                client_ip=request.client.host if request.client else "unknown")

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id

    logger.info("Request completed",
                method=request.method,
                url=str(request.url),
                status_code=response.status_code)

    return response


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "correlation_id": ensure_correlation_id()
            }
        }
    )


@app.exception_handler(SentinelError)
async def sentinel_error_handler(request: Request, exc: SentinelError) -> JSONResponse:
    """Translate service-layer errors into the JSON error envelope."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("Request failed", code=exc.code, error=exc.message, url=str(request.url))
    return _error_response(exc.status_code, exc.code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies with the same envelope as service validation errors."""
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    )
    logger.warning("Request validation failed", error=details, url=str(request.url))
    return _error_response(400, "VALIDATION_ERROR", details)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    logger.error("Unhandled exception",
                 error=str(exc),
                 error_type=type(exc).__name__,
                 url=str(request.url))
    return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")


app.include_router(reports.router)
app.include_router(teaching_reports.router)

# Synthesized audio is served at the path its public URLs point to
app.mount(
    urlparse(settings.audio_base_url).path.rstrip("/") or "/media/podcasts",
    StaticFiles(directory=settings.audio_storage_path, check_dir=False),
    name="podcast-audio",
)


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": "kjv-sentinel-api",
        "version": API_VERSION
    }


@app.get("/")
async def root() -> Dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "KJV Sentinel API",
        "version": API_VERSION,
        "description": "Scriptural analysis of teachings and content against the KJV 1611",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sentinel.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
