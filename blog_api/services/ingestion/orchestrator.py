"""Webhook ingestion orchestrator — ties normalize, validate, write, translate and revalidate together.

The steps run in sequence with no transaction around them. If the process
dies after the canonical post is written, the post is live and some
translations are missing; re-sending the same payload repairs that because
every write overwrites by slug.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from blog_api.config import get_settings
from blog_api.errors import ClientError, StoreError, UpstreamError
from blog_api.models.post import IngestResponse, Post
from blog_api.services.ingestion.normalizer import is_test_ping, normalize_payload
from blog_api.services.ingestion.translator import (
    TranslatedPost,
    TranslationSource,
    translate_post,
)
from blog_api.services.ingestion.validator import (
    InvalidPayload,
    PostPayload,
    validate_payload,
)
from blog_api.services.llm import llm_configured
from blog_api.services.revalidation import revalidate_paths, revalidation_paths
from blog_api.services.storage import PostStore

logger = logging.getLogger(__name__)

TEST_PING_MESSAGE = "Test connection successful"


def build_post(payload: PostPayload, now: datetime | None = None) -> Post:
    """Canonical post from a validated payload; publish time defaults to *now*."""
    now = now or datetime.now(timezone.utc)
    return Post(
        title=payload.title,
        slug=payload.slug,
        content=payload.content,
        meta_description=payload.meta_description,
        featured_image=payload.featured_image,
        author=payload.author,
        tags=payload.tags,
        published_at=payload.published_at or now,
        updated_at=now,
    )


def translation_available() -> bool:
    """True when translations are enabled and an API key is configured."""
    return get_settings().translation_enabled and llm_configured()


async def _slug_available(
    store: PostStore,
    slug: str,
    canonical: Post,
    locale: str,
    mapped: dict[str, str],
    own_suffix: bool = False,
) -> bool:
    """Whether the *locale* variant of *canonical* may be written under *slug*."""
    if slug == canonical.slug:
        return False
    if any(s == slug for loc, s in mapped.items() if loc != locale):
        return False
    if mapped.get(locale) == slug:
        return True
    existing = await store.load_post(slug)
    if existing is None:
        return True
    # An unmapped <canonical>-<locale> record is this locale's legacy variant
    return own_suffix and existing.original_slug == canonical.slug


async def _variant_slug(
    store: PostStore, canonical: Post, translated: TranslatedPost
) -> str | None:
    """Slug for the variant: the translated one, else ``<canonical>-<locale>``.

    A slug is only reused when the mapping already records it for the same
    locale. Returns None when both candidates belong to other posts or locales.
    """
    locale = translated.locale
    mapped = (await store.load_mapping()).get(canonical.slug, {})
    if await _slug_available(store, translated.slug, canonical, locale, mapped):
        return translated.slug
    fallback = f"{canonical.slug}-{locale}"
    if await _slug_available(
        store, fallback, canonical, locale, mapped, own_suffix=True
    ):
        logger.warning(
            "Slug %s is taken by another post or locale, storing %s translation as %s",
            translated.slug,
            locale,
            fallback,
        )
        return fallback
    logger.error(
        "No free slug for the %s translation of %s (tried %s, %s)",
        locale,
        canonical.slug,
        translated.slug,
        fallback,
    )
    return None


async def translate_and_store(
    store: PostStore, canonical: Post, locales: list[str] | None = None
) -> dict[str, str]:
    """Translate *canonical* into *locales* (default: every non-default locale)
    and store the variants.

    Each locale is independent: a failed translation or write is logged and
    skipped. Returns ``{locale: variant_slug}`` for the stored variants.
    """
    source = TranslationSource(
        title=canonical.title,
        content=canonical.content,
        meta_description=canonical.meta_description,
        tags=list(canonical.tags),
    )
    stored: dict[str, str] = {}
    for locale in locales or store.translation_locales:
        translated = await translate_post(source, locale, canonical.slug)
        if translated is None:
            continue
        try:
            slug = await _variant_slug(store, canonical, translated)
            if slug is None:
                continue
            variant = canonical.model_copy(
                update={
                    "slug": slug,
                    "title": translated.title,
                    "content": translated.content,
                    "meta_description": translated.meta_description,
                    "tags": translated.tags,
                    "original_slug": canonical.slug,
                }
            )
            await store.write_post(
                variant, message=f"Add {locale} translation: {canonical.slug}"
            )
            await store.link_variant(canonical.slug, locale, slug)
            stored[locale] = slug
        except StoreError as e:
            logger.error("Could not store %s translation of %s: %s", locale, canonical.slug, e)
    return stored


async def run_ingestion(body: Any, store: PostStore) -> IngestResponse:
    """Run one webhook delivery: ping check -> normalize -> validate -> write ->
    translate -> revalidate.

    Args:
        body: The decoded JSON request body.
        store: Where posts are persisted.

    Returns:
        The success response.

    Raises:
        ClientError: If the payload is not an object or fails validation.
        UpstreamError: If the canonical post cannot be stored.
    """
    if not isinstance(body, dict):
        raise ClientError("Invalid payload: expected JSON object")

    logger.info("Webhook received payload keys: %s", sorted(body.keys()))

    if is_test_ping(body):
        logger.info("Webhook test ping acknowledged")
        return IngestResponse(slug=None, message=TEST_PING_MESSAGE)

    try:
        payload = validate_payload(normalize_payload(body))
    except InvalidPayload as e:
        logger.warning("Webhook validation failed: %s", e)
        raise ClientError(str(e)) from e

    post = build_post(payload)
    try:
        post = await store.write_post(post, message=f"Publish blog post: {post.slug}")
    except StoreError as e:
        logger.error("Failed to save post %s: %s", post.slug, e)
        raise UpstreamError(f"Failed to save post: {e}") from e

    translations: dict[str, str] = {}
    if translation_available():
        translations = await translate_and_store(store, post)
        if translations:
            note = f" (translations: {', '.join(sorted(translations))})"
        else:
            note = " (translation failed)"
    else:
        note = " (translation skipped)"

    await revalidate_paths(
        revalidation_paths(post.slug, list(translations.values()), store.locales)
    )

    logger.info("Ingested post %s%s", post.slug, note)
    return IngestResponse(
        slug=f"/blog/{post.slug}",
        message=f"Post created successfully{note}",
        translations=translations,
    )
