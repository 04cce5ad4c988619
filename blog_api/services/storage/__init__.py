"""Post storage backends and the settings-driven store factory."""

from blog_api.config import get_settings
from blog_api.services.storage.base import PostStore, SlugMapping
from blog_api.services.storage.blob import BlobPostStore, create_container_client
from blog_api.services.storage.github import GitHubPostStore
from blog_api.services.storage.local import LocalPostStore

# Lazy singleton, lives for the process lifetime
_store: PostStore | None = None


def build_post_store() -> PostStore:
    """Create the store selected by ``STORAGE_BACKEND``."""
    settings = get_settings()
    locale_args = {
        "default_locale": settings.default_locale,
        "locales": settings.locales,
    }
    if settings.storage_backend == "github":
        return GitHubPostStore(
            repo=settings.github_repo,
            branch=settings.github_branch,
            content_path=settings.github_content_path,
            mapping_path=settings.github_mapping_path,
            **locale_args,
        )
    if settings.storage_backend == "blob":
        container = create_container_client(
            settings.azure_storage_account,
            settings.azure_storage_container,
            settings.managed_identity_client_id,
        )
        return BlobPostStore(container, **locale_args)
    return LocalPostStore(
        content_dir=settings.content_dir,
        mapping_path=settings.slug_mapping_path,
        **locale_args,
    )


def get_post_store() -> PostStore:
    """Return the shared post store, creating it on first call."""
    global _store
    if _store is None:
        _store = build_post_store()
    return _store


__all__ = [
    "BlobPostStore",
    "GitHubPostStore",
    "LocalPostStore",
    "PostStore",
    "SlugMapping",
    "build_post_store",
    "get_post_store",
]
