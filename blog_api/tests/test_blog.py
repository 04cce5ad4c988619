"""Tests for the blog read endpoints."""

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient


async def _get(path, **params):
    from blog_api.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        return await client.get(path, params=params)


@pytest.fixture
async def seeded(mock_settings, make_post):
    """Two German posts, one with an English translation."""
    from blog_api.services.storage import get_post_store

    store = get_post_store()
    await store.write_post(
        make_post("erster-post", day=1, tags=["a", "b"], content="<p>" + "wort " * 450 + "</p>")
    )
    await store.write_post(make_post("zweiter-post", day=2, tags=["a"]))
    await store.write_post(
        make_post("first-post", day=1, tags=["a"], original_slug="erster-post")
    )
    await store.link_variant("erster-post", "en", "first-post")
    return store


async def test_list_default_locale(seeded):
    response = await _get("/api/blog")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert [p["slug"] for p in data["posts"]] == ["zweiter-post", "erster-post"]
    assert data["posts"][1]["readingTimeMinutes"] == 3
    assert "metaDescription" in data["posts"][0]


async def test_list_english(seeded):
    data = (await _get("/api/blog", locale="en")).json()

    assert [p["slug"] for p in data["posts"]] == ["first-post"]


async def test_list_pagination(seeded):
    data = (await _get("/api/blog", limit=1, offset=1)).json()

    assert data["total"] == 2
    assert [p["slug"] for p in data["posts"]] == ["erster-post"]


async def test_list_unknown_locale(seeded):
    response = await _get("/api/blog", locale="xx")

    assert response.status_code == 404


async def test_get_post(seeded):
    response = await _get("/api/blog/zweiter-post")

    assert response.status_code == 200
    data = response.json()
    assert data["slug"] == "zweiter-post"
    assert data["publishedAt"].startswith("2026-03-02")


async def test_get_translation_by_canonical_slug(seeded):
    data = (await _get("/api/blog/erster-post", locale="en")).json()

    assert data["slug"] == "first-post"
    assert data["originalSlug"] == "erster-post"


async def test_get_post_not_found(seeded):
    response = await _get("/api/blog/gibt-es-nicht")

    assert response.status_code == 404
    assert response.json()["detail"] == "Blog post not found"


async def test_get_post_missing_translation(seeded):
    response = await _get("/api/blog/zweiter-post", locale="fr")

    assert response.status_code == 404


async def test_malformed_slug_rejected(seeded):
    response = await _get("/api/blog/Not_A_Slug")

    assert response.status_code == 422


async def test_related_uses_post_tags(seeded, make_post):
    await seeded.write_post(make_post("dritter-post", day=3))

    data = (await _get("/api/blog/erster-post/related")).json()

    assert [p["slug"] for p in data] == ["zweiter-post", "dritter-post"]


async def test_related_explicit_tags_and_limit(seeded, make_post):
    await seeded.write_post(make_post("dritter-post", day=3, tags=["z"]))

    data = (await _get("/api/blog/erster-post/related", tags="z", limit=1)).json()

    assert [p["slug"] for p in data] == ["dritter-post"]


async def test_translations_map(seeded):
    data = (await _get("/api/blog/erster-post/translations")).json()

    assert data == {"de": "erster-post", "en": "first-post"}


async def test_translations_unknown_post(seeded):
    response = await _get("/api/blog/gibt-es-nicht/translations")

    assert response.status_code == 404


async def test_naive_published_at_treated_as_utc(seeded, make_post):
    await seeded.write_post(
        make_post("naiv", published_at=datetime(2026, 4, 1, 12, 0))
    )

    post = await seeded.get_post("naiv")

    assert post.published_at == datetime(2026, 4, 1, 12, 0, tzinfo=timezone.utc)
