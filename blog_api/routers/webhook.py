"""Content ingestion webhook.

Publishing tools POST finished posts here. The request is authenticated with a
shared bearer secret, rate limited per client, size checked and parsed before
the ingestion pipeline runs.
"""

import json
import logging
import secrets

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from blog_api.config import get_settings
from blog_api.errors import ClientError, ConfigError, IngestError
from blog_api.models.post import IngestResponse
from blog_api.services.ingestion.orchestrator import run_ingestion
from blog_api.services.rate_limiter import RateLimiter
from blog_api.services.storage import PostStore, get_post_store

router = APIRouter(prefix="/webhook", tags=["webhook"])
logger = logging.getLogger(__name__)

# Lazy singleton, lives for the process lifetime
_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Return the shared webhook rate limiter, creating it on first call."""
    global _rate_limiter
    if _rate_limiter is None:
        settings = get_settings()
        _rate_limiter = RateLimiter(
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _rate_limiter


def client_id(request: Request) -> str:
    """Identify the caller: first X-Forwarded-For hop, X-Real-IP, then the peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def _check_auth(request: Request) -> None:
    settings = get_settings()
    if not settings.webhook_secret:
        logger.error("WEBHOOK_SECRET environment variable is not set")
        raise ConfigError("Server configuration error")

    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        raise ClientError("Missing or invalid Authorization header", status_code=401)

    token = auth_header[len("Bearer ") :]
    if not secrets.compare_digest(token.encode(), settings.webhook_secret.encode()):
        raise ClientError("Invalid authentication token", status_code=403)


def _check_rate_limit(request: Request, limiter: RateLimiter) -> None:
    ip = client_id(request)
    if not limiter.allow(ip):
        logger.warning("Webhook rate limit exceeded for %s", ip)
        raise ClientError(
            f"Rate limit exceeded. Max {limiter.max_requests} requests/minute.",
            status_code=429,
        )


def _too_large() -> ClientError:
    return ClientError("Payload too large. Maximum size is 5MB.", status_code=413)


def _check_declared_size(request: Request) -> None:
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > get_settings().max_payload_bytes:
        raise _too_large()


@router.post("", response_model=IngestResponse)
async def receive_post(
    request: Request,
    store: PostStore = Depends(get_post_store),
    limiter: RateLimiter = Depends(get_rate_limiter),
):
    """Ingest a post: auth -> rate limit -> size -> parse -> pipeline."""
    _check_auth(request)
    _check_rate_limit(request, limiter)
    _check_declared_size(request)

    raw = await request.body()
    if len(raw) > get_settings().max_payload_bytes:
        raise _too_large()

    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Webhook received malformed JSON: %s", e)
        raise ClientError("Invalid JSON payload") from e

    try:
        return await run_ingestion(body, store)
    except IngestError:
        raise
    except Exception as e:
        logger.exception("Webhook error")
        raise IngestError("Internal server error") from e


@router.api_route("", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def method_not_allowed():
    """Only POST is accepted."""
    return JSONResponse(
        status_code=405,
        content={"success": False, "error": "Method not allowed. Use POST."},
        headers={"Allow": "POST"},
    )
