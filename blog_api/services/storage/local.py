"""Post store backed by JSON files in a local content directory."""

import logging
from pathlib import Path

from blog_api.errors import StoreError
from blog_api.services.storage.base import PostStore

logger = logging.getLogger(__name__)


class LocalPostStore(PostStore):
    """One ``<slug>.json`` file per post under *content_dir*.

    The directory is created on first use. Commit messages are ignored.
    """

    def __init__(
        self,
        content_dir: str | Path,
        mapping_path: str | Path,
        default_locale: str = "de",
        locales: list[str] | None = None,
    ) -> None:
        super().__init__(default_locale=default_locale, locales=locales)
        self.content_dir = Path(content_dir)
        self.mapping_path = Path(mapping_path)

    def _ensure_content_dir(self) -> None:
        self.content_dir.mkdir(parents=True, exist_ok=True)

    def _post_path(self, slug: str) -> Path:
        return self.content_dir / f"{slug}.json"

    async def _read_post_data(self, slug: str) -> str | None:
        path = self._post_path(slug)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(f"Could not read {path}: {e}") from e

    async def _write_post_data(self, slug: str, data: str, message: str) -> None:
        try:
            self._ensure_content_dir()
            self._post_path(slug).write_text(data, encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Could not write {self._post_path(slug)}: {e}") from e

    async def _list_post_slugs(self) -> list[str]:
        try:
            self._ensure_content_dir()
            return [p.stem for p in sorted(self.content_dir.glob("*.json"))]
        except OSError as e:
            raise StoreError(f"Could not list {self.content_dir}: {e}") from e

    async def _read_mapping_data(self) -> str | None:
        if not self.mapping_path.is_file():
            return None
        try:
            return self.mapping_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StoreError(f"Could not read {self.mapping_path}: {e}") from e

    async def _write_mapping_data(self, data: str, message: str) -> None:
        try:
            self.mapping_path.parent.mkdir(parents=True, exist_ok=True)
            self.mapping_path.write_text(data, encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Could not write {self.mapping_path}: {e}") from e

    async def check_connectivity(self) -> bool:
        try:
            self._ensure_content_dir()
        except OSError:
            logger.warning("Content directory %s is not writable", self.content_dir)
            return False
        return True
