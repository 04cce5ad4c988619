"""Backend-independent post store semantics.

Posts are stored one JSON document per slug, plus a slug mapping document
``{canonical_slug: {locale: variant_slug}}`` linking each canonical
(default-locale) post to its translations. Backends only move bytes; locale
resolution, sorting and ranking live here.

Older content used a suffix convention for translations (``<slug>-en``)
without a mapping entry. Such posts are still recognized when reading but are
never produced.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from pydantic import ValidationError

from blog_api.errors import DataError
from blog_api.models.post import Post

logger = logging.getLogger(__name__)

SlugMapping = dict[str, dict[str, str]]


class PostStore(ABC):
    """Create-or-overwrite post persistence keyed by slug, with locale lookups."""

    def __init__(self, default_locale: str = "de", locales: list[str] | None = None):
        self.default_locale = default_locale
        self.locales = list(locales or [default_locale])
        self.translation_locales = [
            loc for loc in self.locales if loc != self.default_locale
        ]

    # --- backend primitives -------------------------------------------------

    @abstractmethod
    async def _read_post_data(self, slug: str) -> str | None:
        """Return the raw JSON for *slug*, or None if it does not exist."""

    @abstractmethod
    async def _write_post_data(self, slug: str, data: str, message: str) -> None:
        """Create or overwrite the JSON for *slug*."""

    @abstractmethod
    async def _list_post_slugs(self) -> list[str]:
        """Return the slugs of all stored posts."""

    @abstractmethod
    async def _read_mapping_data(self) -> str | None:
        """Return the raw slug mapping JSON, or None if it does not exist."""

    @abstractmethod
    async def _write_mapping_data(self, data: str, message: str) -> None:
        """Create or overwrite the slug mapping JSON."""

    @abstractmethod
    async def check_connectivity(self) -> bool:
        """Lightweight reachability check for health probes."""

    # --- parsing ------------------------------------------------------------

    @staticmethod
    def parse_post(data: str, source: str = "") -> Post:
        """Parse one stored post.

        Raises:
            DataError: If the JSON is malformed or misses required fields.
        """
        try:
            return Post.model_validate(json.loads(data))
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise DataError(f"Unreadable post record {source}: {e}") from e

    async def load_post(self, slug: str) -> Post | None:
        """Raw lookup of the record stored under *slug*, whatever its locale."""
        data = await self._read_post_data(slug)
        if data is None:
            return None
        try:
            return self.parse_post(data, slug)
        except DataError as e:
            logger.warning("%s", e)
            return None

    async def _load_all_posts(self) -> list[Post]:
        """Load every readable post; bad records are logged and skipped."""
        posts: list[Post] = []
        for slug in await self._list_post_slugs():
            try:
                data = await self._read_post_data(slug)
            except Exception as e:
                logger.warning("Could not read post %s: %s", slug, e)
                continue
            if data is None:
                continue
            try:
                posts.append(self.parse_post(data, slug))
            except DataError as e:
                logger.warning("Skipping post: %s", e)
        return posts

    # --- slug mapping -------------------------------------------------------

    async def load_mapping(self) -> SlugMapping:
        """Return the canonical -> {locale: variant slug} table (empty if absent)."""
        try:
            data = await self._read_mapping_data()
        except Exception as e:
            logger.warning("Could not read slug mapping: %s", e)
            return {}
        if not data:
            return {}
        try:
            mapping = json.loads(data)
        except json.JSONDecodeError as e:
            logger.error("Slug mapping is not valid JSON: %s", e)
            return {}
        if not isinstance(mapping, dict):
            logger.error("Slug mapping has unexpected shape: %s", type(mapping).__name__)
            return {}
        return {
            canonical: {k: v for k, v in entry.items() if isinstance(v, str)}
            for canonical, entry in mapping.items()
            if isinstance(entry, dict)
        }

    async def link_variant(self, canonical_slug: str, locale: str, variant_slug: str) -> None:
        """Record *variant_slug* as the *locale* translation of *canonical_slug*."""
        mapping = await self.load_mapping()
        entry = mapping.setdefault(canonical_slug, {})
        if entry.get(locale) == variant_slug:
            return
        entry[locale] = variant_slug
        await self._write_mapping_data(
            json.dumps(mapping, indent=2, ensure_ascii=False),
            f"Map {locale} translation of {canonical_slug}",
        )

    async def get_translated_slug(self, canonical_slug: str, locale: str) -> str | None:
        """Slug of *canonical_slug* in *locale* (the slug itself for the default locale)."""
        if locale == self.default_locale:
            return canonical_slug
        mapping = await self.load_mapping()
        return mapping.get(canonical_slug, {}).get(locale)

    @staticmethod
    def _variants_by_slug(mapping: SlugMapping) -> dict[str, tuple[str, str]]:
        """Invert the mapping: variant slug -> (canonical slug, locale)."""
        return {
            variant: (canonical, locale)
            for canonical, entry in mapping.items()
            for locale, variant in entry.items()
        }

    def _legacy_suffix_locale(self, slug: str) -> tuple[str, str] | None:
        """Split ``<canonical>-<locale>`` into (canonical, locale), if it has that shape."""
        for locale in self.translation_locales:
            suffix = f"-{locale}"
            if slug.endswith(suffix) and len(slug) > len(suffix):
                return slug[: -len(suffix)], locale
        return None

    def _locale_of(
        self,
        post: Post,
        variants: dict[str, tuple[str, str]],
        known_slugs: set[str],
    ) -> str | None:
        """Which locale *post* belongs to, or None if it cannot be placed."""
        if post.slug in variants:
            return variants[post.slug][1]
        legacy = self._legacy_suffix_locale(post.slug)
        if legacy and (post.is_variant or legacy[0] in known_slugs):
            return legacy[1]
        if post.is_variant:
            # A translation with no mapping entry and no locale suffix
            return None
        return self.default_locale

    # --- public operations --------------------------------------------------

    async def write_post(self, post: Post, message: str | None = None) -> Post:
        """Create or overwrite *post* under its slug, stamping ``updated_at``.

        Raises:
            StoreError: If the backend write fails.
        """
        post = post.model_copy(update={"updated_at": datetime.now(timezone.utc)})
        await self._write_post_data(
            post.slug, post.to_json(), message or f"Update blog post: {post.slug}"
        )
        logger.info("Saved post %s", post.slug)
        return post

    async def get_post(self, slug: str, locale: str | None = None) -> Post | None:
        """Return the post for *slug* in *locale*, or None.

        For a non-default locale *slug* may be the canonical slug or the
        variant's own slug. Canonical content is never returned for a
        non-default locale.
        """
        locale = locale or self.default_locale
        mapping = await self.load_mapping()
        variants = self._variants_by_slug(mapping)

        if locale == self.default_locale:
            post = await self.load_post(slug)
            if post is None or post.is_variant or slug in variants:
                return None
            legacy = self._legacy_suffix_locale(slug)
            if legacy and await self._read_post_data(legacy[0]) is not None:
                return None
            return post

        mapped = mapping.get(slug, {}).get(locale)
        if mapped:
            post = await self.load_post(mapped)
            if post is not None:
                return post

        post = await self.load_post(slug)
        if post is not None:
            owner = variants.get(slug)
            if owner is not None and owner[1] == locale:
                return post
            legacy = self._legacy_suffix_locale(slug)
            if owner is None and legacy and legacy[1] == locale:
                if post.is_variant or await self._read_post_data(legacy[0]) is not None:
                    return post

        legacy_post = await self.load_post(f"{slug}-{locale}")
        if legacy_post is not None:
            owner = variants.get(legacy_post.slug)
            if owner is not None:
                if owner[1] == locale:
                    return legacy_post
            elif legacy_post.is_variant or await self._read_post_data(slug) is not None:
                return legacy_post
        return None

    async def list_posts(self, locale: str | None = None) -> list[Post]:
        """All posts of *locale*, most recently published first."""
        locale = locale or self.default_locale
        posts = await self._load_all_posts()
        variants = self._variants_by_slug(await self.load_mapping())
        known_slugs = {p.slug for p in posts}
        selected = [
            p for p in posts if self._locale_of(p, variants, known_slugs) == locale
        ]
        # sort() is stable, so equal timestamps keep listing order
        selected.sort(key=lambda p: p.published_at, reverse=True)
        return selected

    async def get_slugs(self, locale: str | None = None) -> list[str]:
        return [p.slug for p in await self.list_posts(locale)]

    async def get_related_posts(
        self,
        slug: str,
        tags: list[str] | None = None,
        limit: int = 3,
        locale: str | None = None,
    ) -> list[Post]:
        """Up to *limit* other posts of *locale*, ranked by shared tags then recency."""
        others = [
            p
            for p in await self.list_posts(locale)
            if p.slug != slug and p.original_slug != slug
        ]
        if tags:
            wanted = set(tags)
            others.sort(key=lambda p: len(wanted.intersection(p.tags)), reverse=True)
        return others[:limit]
