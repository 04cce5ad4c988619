"""Payload validation — turns a normalized candidate into a typed payload."""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime

from blog_api.models.post import SLUG_PATTERN
from blog_api.services.ingestion.normalizer import PostCandidate, slugify

logger = logging.getLogger(__name__)

_SLUG_RE = re.compile(SLUG_PATTERN)


class InvalidPayload(Exception):
    """The webhook payload failed validation. ``str(exc)`` is the caller-facing reason."""

    pass


@dataclass
class PostPayload:
    """A validated post payload — required fields present, optionals typed."""

    title: str
    content: str
    slug: str
    meta_description: str
    featured_image: str | None = None
    author: str | None = None
    tags: list[str] = field(default_factory=list)
    published_at: datetime | None = None


def _require_string(value: object, message: str) -> str:
    if not value or not isinstance(value, str) or not value.strip():
        raise InvalidPayload(message)
    return value


def _optional_string(value: object, name: str) -> str | None:
    if not value:
        return None
    if not isinstance(value, str):
        raise InvalidPayload(f"Invalid optional field: {name} (expected a string)")
    return value


def _optional_tags(value: object) -> list[str]:
    if not value:
        return []
    if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
        raise InvalidPayload("Invalid optional field: tags (expected a list of strings)")
    return [t for t in value if t.strip()]


def _parse_published_at(value: object) -> datetime | None:
    if not value:
        return None
    if not isinstance(value, str):
        raise InvalidPayload(
            "Invalid optional field: publishedAt (expected an ISO-8601 string)"
        )
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        # Unparseable dates are dropped; the pipeline substitutes "now"
        logger.info("Ignoring unparseable publishedAt %r", value)
        return None


def validate_slug(slug: str) -> str:
    """Return *slug* if well-formed, else its one-shot slugified repair.

    Raises:
        InvalidPayload: If the repaired slug is still not well-formed.
    """
    if _SLUG_RE.match(slug):
        return slug
    repaired = slugify(slug)
    if repaired and _SLUG_RE.match(repaired):
        return repaired
    raise InvalidPayload(
        "Invalid slug format: must be lowercase with hyphens (e.g., my-blog-post)"
    )


def validate_payload(candidate: PostCandidate) -> PostPayload:
    """Check required fields in order, repair the slug once, type-check optionals.

    Raises:
        InvalidPayload: With a reason naming the first failing field.
    """
    title = _require_string(candidate.title, "Missing or invalid required field: title")
    content = _require_string(
        candidate.content,
        "Missing or invalid required field: content (or htmlContent/markdown)",
    )
    slug = _require_string(
        candidate.slug,
        "Missing or invalid required field: slug "
        "(auto-generated from title if not provided)",
    )
    meta_description = _require_string(
        candidate.meta_description,
        "Missing or invalid required field: metaDescription "
        "(auto-generated from content if not provided)",
    )

    return PostPayload(
        title=title,
        content=content,
        slug=validate_slug(slug),
        meta_description=meta_description,
        featured_image=_optional_string(candidate.featured_image, "featuredImage"),
        author=_optional_string(candidate.author, "author"),
        tags=_optional_tags(candidate.tags),
        published_at=_parse_published_at(candidate.published_at),
    )
