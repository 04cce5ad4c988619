"""Tests for the Azure Blob post store."""

from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import HttpResponseError, ResourceNotFoundError

from blog_api.errors import StoreError
from blog_api.services.storage import BlobPostStore


def _container(blobs: dict[str, bytes]) -> MagicMock:
    """MagicMock ContainerClient backed by a name -> bytes dict."""
    container = MagicMock()

    def get_blob_client(name):
        blob = MagicMock()

        def download_blob():
            if name not in blobs:
                raise ResourceNotFoundError("not found")
            downloader = MagicMock()
            downloader.readall.return_value = blobs[name]
            return downloader

        def upload_blob(data, overwrite=False, content_settings=None):
            blobs[name] = data.encode() if isinstance(data, str) else data

        blob.download_blob.side_effect = download_blob
        blob.upload_blob.side_effect = upload_blob
        return blob

    def list_blobs(name_starts_with=None, results_per_page=None):
        items = []
        for name in sorted(blobs):
            if name_starts_with and not name.startswith(name_starts_with):
                continue
            item = MagicMock()
            item.name = name
            items.append(item)
        return iter(items)

    container.get_blob_client.side_effect = get_blob_client
    container.list_blobs.side_effect = list_blobs
    return container


@pytest.fixture
def blobs():
    return {}


@pytest.fixture
def store(blobs):
    return BlobPostStore(_container(blobs), locales=["de", "en", "fr"])


async def test_write_and_read_post(store, blobs, make_post):
    await store.write_post(make_post("hello", tags=["x"]))

    assert "posts/hello.json" in blobs
    post = await store.get_post("hello")
    assert post.tags == ["x"]


async def test_missing_blob_is_none(store):
    assert await store.get_post("missing") is None


async def test_list_uses_posts_prefix(store, blobs, make_post):
    await store.write_post(make_post("a", day=1))
    await store.write_post(make_post("b", day=2))
    await store.link_variant("a", "fr", "a-fr-slug")

    assert await store.get_slugs() == ["b", "a"]
    assert "slug-mapping.json" in blobs


async def test_upload_overwrites_with_json_content_type(make_post):
    container = MagicMock()
    blob = container.get_blob_client.return_value
    blob.download_blob.side_effect = ResourceNotFoundError("nope")
    store = BlobPostStore(container)

    await store.write_post(make_post("hello"))

    container.get_blob_client.assert_called_with("posts/hello.json")
    _, kwargs = blob.upload_blob.call_args
    assert kwargs["overwrite"] is True
    assert kwargs["content_settings"].content_type == "application/json"


async def test_azure_error_on_write_raises_store_error(make_post):
    container = MagicMock()
    container.get_blob_client.return_value.upload_blob.side_effect = HttpResponseError(
        "forbidden"
    )
    store = BlobPostStore(container)

    with pytest.raises(StoreError, match="posts/hello.json"):
        await store.write_post(make_post("hello"))


async def test_check_connectivity_empty_container(store):
    assert await store.check_connectivity() is True


async def test_check_connectivity_failure():
    container = MagicMock()
    container.list_blobs.side_effect = HttpResponseError("unreachable")
    store = BlobPostStore(container)

    assert await store.check_connectivity() is False
