"""Post store backed by a GitHub repository via the contents API.

Every write is a commit. Updating an existing file requires its current blob
``sha``; the store reads it first and sends it along, omitting it when the
file does not exist yet (404). Concurrent writes to the same slug are not
coordinated: GitHub either accepts the last one or rejects it with 409.
"""

import base64
import logging
from typing import Any

import httpx

from blog_api.errors import StoreError
from blog_api.services.http_client import get_shared_client, github_headers
from blog_api.services.storage.base import PostStore

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"


class GitHubPostStore(PostStore):
    """Posts as ``<content_path>/<slug>.json`` files on *branch* of *repo*."""

    def __init__(
        self,
        repo: str,
        branch: str = "main",
        content_path: str = "content/posts",
        mapping_path: str = "content/slug-mapping.json",
        default_locale: str = "de",
        locales: list[str] | None = None,
    ) -> None:
        super().__init__(default_locale=default_locale, locales=locales)
        self.repo = repo
        self.branch = branch
        self.content_path = content_path.strip("/")
        self.mapping_path = mapping_path.strip("/")

    def _contents_url(self, path: str) -> str:
        return f"{GITHUB_API}/repos/{self.repo}/contents/{path}"

    def _post_path(self, slug: str) -> str:
        return f"{self.content_path}/{slug}.json"

    async def _get_contents(self, path: str) -> Any | None:
        """GET a contents object; None when the path does not exist.

        Raises:
            StoreError: On transport errors and any non-200/404 status.
        """
        client = get_shared_client()
        try:
            resp = await client.get(
                self._contents_url(path),
                headers=github_headers(),
                params={"ref": self.branch},
            )
        except httpx.HTTPError as e:
            raise StoreError(f"GitHub request failed for {path}: {e}") from e
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            raise StoreError(f"GitHub API {resp.status_code} reading {path}")
        return resp.json()

    async def _get_raw(self, path: str) -> str:
        """Fetch the raw bytes of *path* (used for files over 1 MB).

        Raises:
            StoreError: On transport errors and any non-200 status.
        """
        client = get_shared_client()
        headers = {**github_headers(), "Accept": "application/vnd.github.raw+json"}
        try:
            resp = await client.get(
                self._contents_url(path), headers=headers, params={"ref": self.branch}
            )
        except httpx.HTTPError as e:
            raise StoreError(f"GitHub request failed for {path}: {e}") from e
        if resp.status_code != 200:
            raise StoreError(f"GitHub API {resp.status_code} reading raw {path}")
        return resp.content.decode("utf-8")

    async def _read_file(self, path: str) -> str | None:
        obj = await self._get_contents(path)
        if obj is None:
            return None
        if not isinstance(obj, dict) or "content" not in obj:
            raise StoreError(f"{path} is not a file")
        # Files over 1 MB come back with encoding "none" and no content
        if obj.get("encoding") != "base64" or not obj["content"]:
            return await self._get_raw(path)
        return base64.b64decode(obj["content"]).decode("utf-8")

    async def _write_file(self, path: str, data: str, message: str) -> None:
        """Create or update *path*, attaching the current sha when the file exists."""
        existing = await self._get_contents(path)
        body: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(data.encode("utf-8")).decode("ascii"),
            "branch": self.branch,
        }
        if isinstance(existing, dict) and existing.get("sha"):
            body["sha"] = existing["sha"]

        client = get_shared_client()
        try:
            resp = await client.put(
                self._contents_url(path), headers=github_headers(), json=body
            )
        except httpx.HTTPError as e:
            raise StoreError(f"GitHub request failed for {path}: {e}") from e
        if resp.status_code not in (200, 201):
            detail = ""
            try:
                detail = resp.json().get("message", "")
            except ValueError:
                pass
            raise StoreError(
                f"GitHub API {resp.status_code} writing {path}"
                + (f": {detail}" if detail else "")
            )
        logger.info("Committed %s to %s@%s", path, self.repo, self.branch)

    async def _read_post_data(self, slug: str) -> str | None:
        return await self._read_file(self._post_path(slug))

    async def _write_post_data(self, slug: str, data: str, message: str) -> None:
        await self._write_file(self._post_path(slug), data, message)

    async def _list_post_slugs(self) -> list[str]:
        listing = await self._get_contents(self.content_path)
        if not isinstance(listing, list):
            return []
        return [
            entry["name"][: -len(".json")]
            for entry in listing
            if entry.get("type") == "file" and entry.get("name", "").endswith(".json")
        ]

    async def _read_mapping_data(self) -> str | None:
        return await self._read_file(self.mapping_path)

    async def _write_mapping_data(self, data: str, message: str) -> None:
        await self._write_file(self.mapping_path, data, message)

    async def check_connectivity(self) -> bool:
        client = get_shared_client()
        try:
            resp = await client.get(
                f"{GITHUB_API}/repos/{self.repo}", headers=github_headers()
            )
            return resp.status_code == 200
        except httpx.HTTPError:
            return False
