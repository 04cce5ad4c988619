"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App
    debug: bool = False
    environment: str = "development"
    site_url: str = "http://localhost:3000"

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
    ]

    # Webhook (protects POST /api/webhook)
    webhook_secret: str = ""
    max_payload_bytes: int = 5 * 1024 * 1024
    rate_limit_max: int = 10
    rate_limit_window_seconds: float = 60.0

    # Locales (default_locale holds the canonical posts)
    default_locale: str = "de"
    locales: list[str] = ["de", "en", "fr"]

    # Post storage
    storage_backend: Literal["local", "github", "blob"] = "local"
    content_dir: str = "content/posts"
    slug_mapping_path: str = "content/slug-mapping.json"

    # GitHub contents API (storage_backend="github")
    github_repo: str = ""
    github_token: str = ""
    github_branch: str = "main"
    github_content_path: str = "content/posts"
    github_mapping_path: str = "content/slug-mapping.json"

    # Azure Blob Storage (storage_backend="blob")
    azure_storage_account: str = ""
    azure_storage_container: str = "posts"
    managed_identity_client_id: str = ""

    # OpenAI (translations)
    openai_api_key: str = ""
    openai_base_url: str = ""
    translation_model: str = "gpt-4o-mini"
    translation_enabled: bool = True

    # Timeout for store and translation calls
    upstream_timeout_seconds: float = 30.0

    # Rendering layer cache invalidation
    revalidate_url: str = ""
    revalidate_secret: str = ""

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
