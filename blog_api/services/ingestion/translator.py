"""Machine translation of blog posts into the non-default locales.

Translation is best-effort: every failure is logged and reported as ``None``
so the caller can publish the canonical post regardless.
"""

import json
import logging
from dataclasses import dataclass, field

from openai import APIError

from blog_api.services.ingestion.normalizer import slugify, summarize
from blog_api.services.llm import chat_completion, llm_configured

logger = logging.getLogger(__name__)

SOURCE_LANGUAGE = "German"

LANGUAGE_NAMES = {
    "en": "English",
    "fr": "French",
}

TRANSLATION_TEMPERATURE = 0.3
TRANSLATION_MAX_TOKENS = 16000

# Service-supplied slugs shorter than this are ignored
MIN_SLUG_LENGTH = 5

SYSTEM_PROMPT = (
    "You are a professional translator. Translate blog posts accurately "
    "while preserving HTML formatting. Always respond with valid JSON only, "
    "no markdown code blocks."
)

TRANSLATION_PROMPT = (
    "Translate the following blog post from {source} to {target}.\n"
    "Keep all HTML tags intact. Preserve the original formatting and structure.\n"
    "Return ONLY a valid JSON object with these fields: title, content, "
    "metaDescription, tags (as array), slug (URL slug of the translated title, "
    "lowercase with hyphens)\n"
    "\n"
    "Blog post to translate:\n"
    "Title: {title}\n"
    "Meta Description: {meta_description}\n"
    "Tags: {tags}\n"
    "Content (HTML):\n"
    "{content}"
)


@dataclass
class TranslationSource:
    """The translatable fields of a canonical post."""

    title: str
    content: str
    meta_description: str
    tags: list[str] = field(default_factory=list)


@dataclass
class TranslatedPost:
    """A translation ready to be stored as a locale variant."""

    locale: str
    slug: str
    title: str
    content: str
    meta_description: str
    tags: list[str] = field(default_factory=list)


class TranslationError(Exception):
    """The translation response could not be used."""

    pass


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence, if any."""
    t = text.strip()
    if t.startswith("```"):
        t = t[3:]
        if t.lower().startswith("json"):
            t = t[4:]
        if t.rstrip().endswith("```"):
            t = t.rstrip()[:-3]
        t = t.strip()
    return t


def choose_slug(
    suggested: object, title: str, canonical_slug: str, locale: str
) -> str:
    """Pick the variant slug: the service's own, else from the title, else suffixed."""
    fallback = f"{canonical_slug}-{locale}"
    candidates = []
    if isinstance(suggested, str) and len(suggested.strip()) >= MIN_SLUG_LENGTH:
        candidates.append(slugify(suggested))
    candidates.append(slugify(title))
    for slug in candidates:
        if slug and slug != canonical_slug:
            return slug
    return fallback


def _parse_response(
    response_text: str, source: TranslationSource, canonical_slug: str, locale: str
) -> TranslatedPost:
    """Parse the JSON response from the LLM.

    Raises:
        TranslationError: If the response is not a usable JSON object.
    """
    try:
        data = json.loads(strip_code_fence(response_text))
    except json.JSONDecodeError as e:
        raise TranslationError(f"Invalid JSON response: {e}") from e
    if not isinstance(data, dict):
        raise TranslationError("Response is not a JSON object")

    title = data.get("title")
    content = data.get("content")
    if not isinstance(title, str) or not title.strip():
        raise TranslationError("Response is missing a title")
    if not isinstance(content, str) or not content.strip():
        raise TranslationError("Response is missing content")

    meta_description = data.get("metaDescription")
    if not isinstance(meta_description, str) or not meta_description.strip():
        meta_description = summarize(content)

    tags = data.get("tags")
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",")]
    if not isinstance(tags, list):
        tags = list(source.tags)
    tags = [t for t in tags if isinstance(t, str) and t.strip()]

    return TranslatedPost(
        locale=locale,
        slug=choose_slug(data.get("slug"), title, canonical_slug, locale),
        title=title,
        content=content,
        meta_description=meta_description,
        tags=tags,
    )


async def translate_post(
    source: TranslationSource, target_locale: str, canonical_slug: str
) -> TranslatedPost | None:
    """Translate *source* into *target_locale*.

    Returns None (after logging) when the locale is unsupported, no API key
    is configured, or the API call or response parsing fails. Never raises.
    """
    language = LANGUAGE_NAMES.get(target_locale)
    if language is None:
        logger.warning("No translation target language for locale %r", target_locale)
        return None
    if not llm_configured():
        logger.warning("OPENAI_API_KEY not set — skipping %s translation", language)
        return None

    prompt = TRANSLATION_PROMPT.format(
        source=SOURCE_LANGUAGE,
        target=language,
        title=source.title,
        meta_description=source.meta_description,
        tags=", ".join(source.tags),
        content=source.content,
    )

    try:
        response_text = await chat_completion(
            prompt=prompt,
            system=SYSTEM_PROMPT,
            max_tokens=TRANSLATION_MAX_TOKENS,
            temperature=TRANSLATION_TEMPERATURE,
        )
    except APIError as e:
        logger.error("Translation to %s failed: %s", language, e)
        return None
    except Exception as e:
        logger.error("Unexpected error translating to %s: %s", language, e)
        return None

    if not response_text.strip():
        logger.error("Empty translation response for %s", language)
        return None

    try:
        translated = _parse_response(response_text, source, canonical_slug, target_locale)
    except TranslationError as e:
        logger.error("Failed to parse %s translation of %s: %s", language, canonical_slug, e)
        return None

    logger.info("Translated %s to %s as %s", canonical_slug, language, translated.slug)
    return translated
