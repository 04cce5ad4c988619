"""Blog post endpoints consumed by the rendering layer."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from blog_api.config import get_settings
from blog_api.errors import StoreError
from blog_api.models.post import Post, PostIndex, PostSummary
from blog_api.services.ingestion.normalizer import reading_time_minutes
from blog_api.services.storage import PostStore, get_post_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["blog"])

_SLUG_PATH = Path(..., pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$", max_length=200)


def _resolve_locale(locale: str | None) -> str:
    settings = get_settings()
    locale = locale or settings.default_locale
    if locale not in settings.locales:
        raise HTTPException(status_code=404, detail=f"Unknown locale: {locale}")
    return locale


def _summary(post: Post) -> PostSummary:
    return PostSummary(
        title=post.title,
        slug=post.slug,
        meta_description=post.meta_description,
        featured_image=post.featured_image,
        author=post.author,
        tags=post.tags,
        published_at=post.published_at,
        reading_time_minutes=reading_time_minutes(post.content),
    )


@router.get("", response_model=PostIndex)
async def list_blog_posts(
    locale: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    store: PostStore = Depends(get_post_store),
):
    """Get the blog post index for a locale, newest first."""
    locale = _resolve_locale(locale)
    try:
        posts = await store.list_posts(locale)
    except StoreError as exc:
        logger.warning("Failed to list %s posts: %s", locale, exc)
        raise HTTPException(status_code=502, detail="Failed to read posts") from exc
    page = posts[offset : offset + limit]
    return PostIndex(posts=[_summary(p) for p in page], total=len(posts))


@router.get("/{slug}", response_model=Post)
async def get_blog_post(
    slug: str = _SLUG_PATH,
    locale: str | None = Query(default=None),
    store: PostStore = Depends(get_post_store),
):
    """Get a single post. For translations, the canonical slug works too."""
    locale = _resolve_locale(locale)
    try:
        post = await store.get_post(slug, locale)
    except StoreError as exc:
        logger.warning("Failed to read post %s (%s): %s", slug, locale, exc)
        raise HTTPException(status_code=502, detail="Failed to read post") from exc
    if post is None:
        raise HTTPException(status_code=404, detail="Blog post not found")
    return post


@router.get("/{slug}/related", response_model=list[PostSummary])
async def get_related_blog_posts(
    slug: str = _SLUG_PATH,
    locale: str | None = Query(default=None),
    tags: list[str] | None = Query(default=None),
    limit: int = Query(default=3, ge=1, le=20),
    store: PostStore = Depends(get_post_store),
):
    """Other posts of the locale ranked by shared tags, then recency.

    Without explicit ``tags`` the current post's own tags are used.
    """
    locale = _resolve_locale(locale)
    try:
        if tags is None:
            current = await store.get_post(slug, locale)
            tags = current.tags if current else []
        related = await store.get_related_posts(slug, tags=tags, limit=limit, locale=locale)
    except StoreError as exc:
        logger.warning("Failed to read related posts for %s: %s", slug, exc)
        raise HTTPException(status_code=502, detail="Failed to read posts") from exc
    return [_summary(p) for p in related]


@router.get("/{slug}/translations", response_model=dict[str, str])
async def get_blog_post_translations(
    slug: str = _SLUG_PATH,
    store: PostStore = Depends(get_post_store),
):
    """Slug of a canonical post in every locale that has it (for language switchers)."""
    try:
        if await store.get_post(slug) is None:
            raise HTTPException(status_code=404, detail="Blog post not found")
        translations: dict[str, str] = {}
        for locale in store.locales:
            translated = await store.get_translated_slug(slug, locale)
            if translated:
                translations[locale] = translated
    except StoreError as exc:
        logger.warning("Failed to read translations for %s: %s", slug, exc)
        raise HTTPException(status_code=502, detail="Failed to read post") from exc
    return translations
