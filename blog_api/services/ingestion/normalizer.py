"""Payload normalization — maps upstream field names onto the canonical post shape.

Publishing tools send the same post under different field names (``htmlContent``
instead of ``content``, an ``seoMetadata`` object instead of top-level
``metaDescription``/``slug``, ``keywords`` instead of ``tags``, ...). The
normalizer folds all recognized shapes into one ``PostCandidate``; the
validator then turns that into a typed payload.
"""

import json
import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Any

SLUG_MAX_LENGTH = 60
META_DESCRIPTION_MAX_LENGTH = 160
WORDS_PER_MINUTE = 200

_GERMAN_CHARS = {"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"}

_TAG_RE = re.compile(r"<[^>]*>")
_UNSAFE_SLUG_CHARS_RE = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-+")

# "@type": "ImageObject", ..., "url": "https://..."  (within one JSON-LD object)
_JSONLD_IMAGE_RE = re.compile(
    r'"@type"\s*:\s*"ImageObject"[^{}]*?"(?:url|contentUrl)"\s*:\s*"([^"]+)"'
)

# Alternate image fields, in precedence order
_IMAGE_FIELDS = ("coverImageUrl", "coverImage")
_SEO_IMAGE_FIELDS = ("ogImage", "image", "featuredImage")


@dataclass
class PostCandidate:
    """Normalized but not yet validated post fields.

    Values keep whatever type the sender used; the validator checks them.
    """

    title: Any = None
    content: Any = None
    slug: Any = None
    meta_description: Any = None
    featured_image: Any = None
    author: Any = None
    tags: Any = None
    published_at: Any = None


def slugify(text: str) -> str:
    """Turn a title (or a malformed slug) into a URL-safe slug.

    German umlauts are transliterated (``ü`` -> ``ue``); any other accented
    letter loses its diacritic. The result matches ``[a-z0-9]+(-[a-z0-9]+)*``
    or is empty, is at most 60 characters, and ``slugify(slugify(s)) ==
    slugify(s)``.
    """
    text = unicodedata.normalize("NFC", text).lower()
    for char, replacement in _GERMAN_CHARS.items():
        text = text.replace(char, replacement)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c))
    text = _UNSAFE_SLUG_CHARS_RE.sub("", text)
    text = _WHITESPACE_RE.sub("-", text.strip())
    text = _HYPHENS_RE.sub("-", text).strip("-")
    return text[:SLUG_MAX_LENGTH].strip("-")


def strip_html(html: str) -> str:
    """Remove tags and collapse whitespace."""
    return " ".join(_TAG_RE.sub(" ", html).split())


def summarize(content: str, max_length: int = META_DESCRIPTION_MAX_LENGTH) -> str:
    """Plain-text excerpt of *content*, with ``...`` appended if truncated."""
    text = strip_html(content)
    if len(text) > max_length:
        return text[:max_length] + "..."
    return text


def reading_time_minutes(content: str) -> int:
    """Estimated reading time at 200 words per minute (at least 1)."""
    words = len(strip_html(content).split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def extract_jsonld_image(text: str) -> str | None:
    """Find the URL of the first JSON-LD ``ImageObject`` embedded in *text*."""
    match = _JSONLD_IMAGE_RE.search(text)
    return match.group(1) if match else None


def is_test_ping(data: dict[str, Any]) -> bool:
    """True for connectivity probes: no title/content and a truthy ``test`` flag."""
    return not data.get("title") and not data.get("content") and bool(data.get("test"))


def _first_string(data: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if value and isinstance(value, str):
            return value
    return None


def _parse_tags(keywords: Any) -> Any:
    if isinstance(keywords, list):
        return keywords
    if isinstance(keywords, str):
        return [k.strip() for k in keywords.split(",") if k.strip()]
    return None


def _jsonld_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return ""


def normalize_payload(data: dict[str, Any]) -> PostCandidate:
    """Fold a raw webhook body into a ``PostCandidate``.

    Canonical fields win; alternates are only consulted when the canonical
    field is missing or empty. Slug and meta description are synthesized from
    the title and content as a last resort.
    """
    seo = data.get("seoMetadata")
    if not isinstance(seo, dict):
        seo = {}

    content = data.get("content")
    if not content:
        content = _first_string(data, ("htmlContent", "markdown"))

    meta_description = data.get("metaDescription")
    if not meta_description:
        meta_description = _first_string(seo, ("metaDescription", "description"))
    if not meta_description:
        meta_description = data.get("description")

    slug = data.get("slug")
    if not slug:
        slug = _first_string(seo, ("slug", "handle"))

    featured_image = data.get("featuredImage")
    if not featured_image:
        featured_image = _first_string(data, _IMAGE_FIELDS) or _first_string(
            seo, _SEO_IMAGE_FIELDS
        )
    if not featured_image:
        for source in (content, _jsonld_text(data.get("schemaJsonLd"))):
            if isinstance(source, str) and source:
                featured_image = extract_jsonld_image(source)
                if featured_image:
                    break

    tags = data.get("tags")
    if not tags and data.get("keywords"):
        tags = _parse_tags(data["keywords"])

    title = data.get("title")
    if not slug and title and isinstance(title, str):
        slug = slugify(title)

    if not meta_description and content and isinstance(content, str):
        meta_description = summarize(content)

    return PostCandidate(
        title=title,
        content=content,
        slug=slug,
        meta_description=meta_description,
        featured_image=featured_image,
        author=data.get("author"),
        tags=tags,
        published_at=data.get("publishedAt"),
    )
