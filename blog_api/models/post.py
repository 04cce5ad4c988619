"""Blog post data models.

Posts are persisted as camelCase JSON (``metaDescription``, ``publishedAt``,
...) because the rendering layer reads the same files. Python code uses the
snake_case attribute names.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class Post(BaseModel):
    """A stored blog post — canonical (default locale) or a locale variant."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    slug: str = Field(..., pattern=SLUG_PATTERN, max_length=200)
    content: str
    meta_description: str
    featured_image: str | None = None
    author: str | None = None
    tags: list[str] = []
    published_at: datetime
    updated_at: datetime | None = None
    # Set on locale variants only: slug of the canonical post
    original_slug: str | None = None

    @field_validator("published_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC so posts sort consistently."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_json(self) -> str:
        """Serialize for storage (camelCase keys, unset optionals omitted)."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)

    @property
    def is_variant(self) -> bool:
        return self.original_slug is not None


class PostSummary(BaseModel):
    """Post metadata for index display."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    slug: str
    meta_description: str
    featured_image: str | None = None
    author: str | None = None
    tags: list[str] = []
    published_at: datetime
    reading_time_minutes: int


class PostIndex(BaseModel):
    """Blog post index for one locale."""

    posts: list[PostSummary]
    total: int


class IngestResponse(BaseModel):
    """Successful webhook response."""

    success: bool = True
    slug: str | None = None
    message: str
    translations: dict[str, str] = {}
