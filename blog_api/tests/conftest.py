"""Shared fixtures for blog-api tests."""

from datetime import datetime, timezone

import pytest


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons and caches between tests."""
    yield

    # 1. Settings LRU cache
    from blog_api.config import get_settings

    get_settings.cache_clear()

    # 2. Post store singleton
    import blog_api.services.storage as storage_mod

    storage_mod._store = None

    # 3. HTTP client singleton
    import blog_api.services.http_client as http_mod

    http_mod._client = None

    # 4. Webhook rate limiter
    import blog_api.routers.webhook as webhook_mod

    webhook_mod._rate_limiter = None

    # 5. Health check cache
    import blog_api.main as main_mod

    main_mod._health_cache = None


@pytest.fixture
def mock_settings(monkeypatch, tmp_path):
    """Provide a Settings object with safe test defaults (local storage under tmp_path)."""
    from blog_api.config import Settings, get_settings

    test_settings = Settings(
        webhook_secret="test-secret",
        storage_backend="local",
        content_dir=str(tmp_path / "content" / "posts"),
        slug_mapping_path=str(tmp_path / "content" / "slug-mapping.json"),
        github_repo="testowner/testrepo",
        github_token="test-token",
        openai_api_key="test-key",
        translation_model="gpt-4o-mini",
        translation_enabled=True,
        revalidate_url="",
    )

    get_settings.cache_clear()
    monkeypatch.setattr("blog_api.config.get_settings", lambda: test_settings)

    # Patch get_settings in all modules that import it directly
    # (from blog_api.config import get_settings creates a local binding that
    # the blog_api.config monkeypatch above does not affect)
    for mod_path in [
        "blog_api.main",
        "blog_api.routers.blog",
        "blog_api.routers.webhook",
        "blog_api.services.http_client",
        "blog_api.services.llm",
        "blog_api.services.revalidation",
        "blog_api.services.storage",
        "blog_api.services.ingestion.orchestrator",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings


@pytest.fixture
def local_store(tmp_path):
    """An empty local post store with de/en/fr locales."""
    from blog_api.services.storage import LocalPostStore

    return LocalPostStore(
        content_dir=tmp_path / "posts",
        mapping_path=tmp_path / "slug-mapping.json",
        default_locale="de",
        locales=["de", "en", "fr"],
    )


@pytest.fixture
def make_post():
    """Factory for Post objects with sensible defaults."""
    from blog_api.models.post import Post

    def _make(slug="test-post", day=1, tags=None, original_slug=None, **kwargs):
        fields = {
            "title": f"Title {slug}",
            "slug": slug,
            "content": f"<p>Content of {slug}</p>",
            "meta_description": f"About {slug}",
            "tags": tags or [],
            "published_at": datetime(2026, 3, day, 10, 0, tzinfo=timezone.utc),
            "original_slug": original_slug,
        }
        fields.update(kwargs)
        return Post(**fields)

    return _make
