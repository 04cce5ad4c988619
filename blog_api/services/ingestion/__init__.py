"""Ingestion services for normalizing, validating, translating and storing webhook posts."""

from blog_api.services.ingestion.normalizer import (
    PostCandidate,
    is_test_ping,
    normalize_payload,
    slugify,
)
from blog_api.services.ingestion.orchestrator import run_ingestion, translate_and_store
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

__all__ = [
    "InvalidPayload",
    "PostCandidate",
    "PostPayload",
    "TranslatedPost",
    "TranslationSource",
    "is_test_ping",
    "normalize_payload",
    "run_ingestion",
    "slugify",
    "translate_and_store",
    "translate_post",
    "validate_payload",
]
