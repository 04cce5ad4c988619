"""Tests for settings loading and store selection."""

from unittest.mock import MagicMock

from blog_api.config import Settings
from blog_api.services.storage import (
    BlobPostStore,
    GitHubPostStore,
    LocalPostStore,
    build_post_store,
    get_post_store,
)


def test_defaults(monkeypatch):
    monkeypatch.delenv("WEBHOOK_SECRET", raising=False)

    settings = Settings(_env_file=None)

    assert settings.default_locale == "de"
    assert settings.locales == ["de", "en", "fr"]
    assert settings.rate_limit_max == 10
    assert settings.max_payload_bytes == 5 * 1024 * 1024
    assert settings.storage_backend == "local"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("WEBHOOK_SECRET", "from-env")
    monkeypatch.setenv("STORAGE_BACKEND", "github")

    settings = Settings(_env_file=None)

    assert settings.webhook_secret == "from-env"
    assert settings.storage_backend == "github"


def test_local_store_selected(mock_settings):
    store = build_post_store()

    assert isinstance(store, LocalPostStore)
    assert str(store.content_dir) == mock_settings.content_dir
    assert store.translation_locales == ["en", "fr"]


def test_github_store_selected(mock_settings):
    mock_settings.storage_backend = "github"

    store = build_post_store()

    assert isinstance(store, GitHubPostStore)
    assert store.repo == "testowner/testrepo"
    assert store.content_path == "content/posts"


def test_blob_store_selected(mock_settings, mocker):
    mock_settings.storage_backend = "blob"
    mock_settings.azure_storage_account = "acct"
    mock_create = mocker.patch(
        "blog_api.services.storage.create_container_client", return_value=MagicMock()
    )

    store = build_post_store()

    assert isinstance(store, BlobPostStore)
    mock_create.assert_called_once_with("acct", "posts", "")


def test_store_singleton(mock_settings):
    assert get_post_store() is get_post_store()
