"""
Blog API

Content ingestion webhook and locale-aware blog post store for the marketing
site. Rendering happens elsewhere; this service stores posts, translates them
and tells the rendering layer what to revalidate.
"""

import logging
import time
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blog_api.config import get_settings
from blog_api.errors import ConfigError, IngestError
from blog_api.middleware import (
    RequestIDLogFilter,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from blog_api.routers import blog, webhook
from blog_api.services.storage import get_post_store

logger = logging.getLogger(__name__)

settings = get_settings()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s"

# Health check cache: (result_dict, timestamp)
_health_cache: tuple[dict[str, Any], float] | None = None
_HEALTH_CACHE_TTL = 30  # seconds


def configure_logging() -> None:
    """Log to stderr with the request ID on every line."""
    logging.basicConfig(
        level=logging.DEBUG if get_settings().debug else logging.INFO,
        format=LOG_FORMAT,
    )
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, RequestIDLogFilter) for f in handler.filters):
            handler.addFilter(RequestIDLogFilter())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    configure_logging()
    if not get_settings().webhook_secret:
        logger.warning("WEBHOOK_SECRET is not set — the webhook will answer 500")
    yield


app = FastAPI(
    title="Blog API",
    description="Content ingestion webhook and localized blog post store",
    version="0.1.0",
    lifespan=lifespan,
)

# Request IDs and security headers
app.add_middleware(RequestIDMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)


@app.exception_handler(IngestError)
async def ingest_error_handler(request: Request, exc: IngestError) -> JSONResponse:
    """Render pipeline errors as ``{success: false, error}``."""
    if isinstance(exc, ConfigError):
        logger.error("Configuration error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


# Routers
app.include_router(webhook.router, prefix="/api")
app.include_router(blog.router, prefix="/api")


def _check_config() -> str:
    """Verify required configuration is loaded. Returns 'ok' or 'fail'."""
    s = get_settings()
    if not s.webhook_secret:
        return "fail"
    if s.storage_backend == "github" and not (s.github_repo and s.github_token):
        return "fail"
    if s.storage_backend == "blob" and not s.azure_storage_account:
        return "fail"
    return "ok"


async def _run_health_checks() -> dict[str, Any]:
    """Run all health checks, returning the full response body."""
    global _health_cache
    now = time.time()
    if _health_cache is not None:
        cached_result, cached_at = _health_cache
        if now - cached_at < _HEALTH_CACHE_TTL:
            return cached_result

    config_status = _check_config()
    storage_status = "ok" if await get_post_store().check_connectivity() else "fail"

    checks = {"config": config_status, "storage": storage_status}
    failed = [k for k, v in checks.items() if v != "ok"]

    if failed:
        overall = "degraded"
        logger.warning("Health check degraded — failed: %s", ", ".join(failed))
    else:
        overall = "ok"

    result: dict[str, Any] = {
        "status": overall,
        "service": "blog-api",
        "version": "0.1.0",
        "checks": checks,
    }
    _health_cache = (result, now)
    return result


@app.get("/api/health")
async def health_check() -> JSONResponse:
    """Health check verifying configuration and storage."""
    result = await _run_health_checks()
    return JSONResponse(content=result, status_code=200)
