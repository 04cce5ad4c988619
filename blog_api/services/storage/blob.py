"""Post store backed by an Azure Blob Storage container."""

import logging

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity import ManagedIdentityCredential
from azure.storage.blob import ContainerClient, ContentSettings

from blog_api.errors import StoreError
from blog_api.services.storage.base import PostStore

logger = logging.getLogger(__name__)

POSTS_PREFIX = "posts/"
MAPPING_BLOB = "slug-mapping.json"

_JSON = ContentSettings(content_type="application/json")


def create_container_client(
    account: str, container_name: str, managed_identity_client_id: str
) -> ContainerClient:
    """Create a ContainerClient authenticated with the managed identity."""
    account_url = f"https://{account}.blob.core.windows.net"
    return ContainerClient(
        account_url=account_url,
        container_name=container_name,
        credential=ManagedIdentityCredential(client_id=managed_identity_client_id),
    )


class BlobPostStore(PostStore):
    """Posts as ``posts/<slug>.json`` blobs, mapping as ``slug-mapping.json``."""

    def __init__(
        self,
        container: ContainerClient,
        default_locale: str = "de",
        locales: list[str] | None = None,
    ) -> None:
        super().__init__(default_locale=default_locale, locales=locales)
        self._container = container

    async def _download(self, name: str) -> str | None:
        try:
            blob = self._container.get_blob_client(name)
            return blob.download_blob().readall().decode("utf-8")
        except ResourceNotFoundError:
            return None
        except AzureError as e:
            raise StoreError(f"Azure error reading {name}: {e}") from e

    async def _upload(self, name: str, data: str) -> None:
        try:
            blob = self._container.get_blob_client(name)
            blob.upload_blob(data, overwrite=True, content_settings=_JSON)
        except AzureError as e:
            raise StoreError(f"Azure error writing {name}: {e}") from e

    async def _read_post_data(self, slug: str) -> str | None:
        return await self._download(f"{POSTS_PREFIX}{slug}.json")

    async def _write_post_data(self, slug: str, data: str, message: str) -> None:
        await self._upload(f"{POSTS_PREFIX}{slug}.json", data)

    async def _list_post_slugs(self) -> list[str]:
        try:
            names = [
                b.name for b in self._container.list_blobs(name_starts_with=POSTS_PREFIX)
            ]
        except AzureError as e:
            raise StoreError(f"Azure error listing posts: {e}") from e
        return [
            name[len(POSTS_PREFIX) : -len(".json")]
            for name in names
            if name.endswith(".json")
        ]

    async def _read_mapping_data(self) -> str | None:
        return await self._download(MAPPING_BLOB)

    async def _write_mapping_data(self, data: str, message: str) -> None:
        await self._upload(MAPPING_BLOB, data)

    async def check_connectivity(self) -> bool:
        """Lightweight storage connectivity check — lists 1 blob."""
        try:
            next(self._container.list_blobs(results_per_page=1).__iter__())
            return True
        except StopIteration:
            # Empty container still means connected
            return True
        except Exception:
            return False
