"""Cache invalidation signal for the rendering layer.

After a post is written, the statically rendered blog pages that show it are
stale. The rendering layer exposes a revalidation hook; this module computes
the affected paths and posts them there.
"""

import logging

import httpx

from blog_api.config import get_settings
from blog_api.services.http_client import get_shared_client

logger = logging.getLogger(__name__)


def revalidation_paths(
    slug: str, variant_slugs: list[str] | None = None, locales: list[str] | None = None
) -> list[str]:
    """Listing and post paths to invalidate for *slug*, unprefixed and per locale.

    Translated slugs are added under every locale prefix as well.
    """
    locales = locales if locales is not None else get_settings().locales
    slugs = [slug, *(variant_slugs or [])]

    paths = ["/blog", f"/blog/{slug}"]
    for locale in locales:
        paths.append(f"/{locale}/blog")
        paths.extend(f"/{locale}/blog/{s}" for s in slugs)
    return list(dict.fromkeys(paths))


async def revalidate_paths(paths: list[str]) -> bool:
    """Ask the rendering layer to drop cached pages for *paths*.

    Returns True if the hook accepted the request. Failures are logged, never
    raised; a missed revalidation only delays freshness.
    """
    settings = get_settings()
    if not settings.revalidate_url:
        logger.info("REVALIDATE_URL not set — skipping revalidation of %d paths", len(paths))
        return False

    headers = {}
    if settings.revalidate_secret:
        headers["Authorization"] = f"Bearer {settings.revalidate_secret}"

    client = get_shared_client()
    try:
        resp = await client.post(
            settings.revalidate_url, json={"paths": paths}, headers=headers
        )
    except httpx.HTTPError as e:
        logger.warning("Revalidation request failed: %s", e)
        return False
    if resp.status_code >= 300:
        logger.warning("Revalidation hook returned %d", resp.status_code)
        return False
    logger.info("Revalidated %d paths", len(paths))
    return True
