import pytest

from bucketdrive.application.ports.storage import ListPage, ObjectSummary, PresignedURL, StorageInfo
from bucketdrive.application.services.directory_lister import DirectoryLister
from bucketdrive.infrastructure.adapters.storage_port import StorageProviderPortAdapter
from bucketdrive.infrastructure.external.storage.config import StorageConfig
from bucketdrive.infrastructure.external.storage.providers.memory import InMemoryProvider


class PagedStorage:
    """Serves canned pages keyed by continuation token."""

    def __init__(self, pages: dict):
        self.pages = pages
        self.tokens = []

    def info(self) -> StorageInfo:
        return StorageInfo(type="memory", bucket="b", region=None, bucket_url="memory://b")

    async def list_objects_page(self, prefix="", delimiter="/", continuation_token=None):
        self.tokens.append(continuation_token)
        return self.pages[continuation_token]

    async def generate_presigned_url(self, key, expires_in=3600):
        return PresignedURL(url=f"memory://b/{key}?sig", expires_in=expires_in)


async def _small_page_storage() -> StorageProviderPortAdapter:
    provider = InMemoryProvider(StorageConfig(type="memory", bucket="test-bucket", max_keys=2))
    for key in ["docs/", "docs/a.txt", "docs/b.txt", "docs/c.txt", "docs/sub/x.txt", "docs/sub2/y.txt", "top.txt"]:
        await provider.upload(b"data", key)
    return StorageProviderPortAdapter(provider)


@pytest.mark.asyncio
async def test_list_follows_every_page():
    storage = await _small_page_storage()
    lister = DirectoryLister(storage, signed_url_ttl=600)

    listing = await lister.list("docs/")

    assert [f.name for f in listing.files] == ["a.txt", "b.txt", "c.txt"]
    assert listing.folder_prefixes == ["docs/sub/", "docs/sub2/"]
    for f in listing.files:
        assert f.parent == "docs/"
        assert f.bucket_name == "test-bucket"
        assert f.url.startswith(f"memory://test-bucket/{f.full_path}?")
        assert "X-Amz-Expires=600" in f.url


@pytest.mark.asyncio
async def test_iter_pages_yields_per_page():
    storage = await _small_page_storage()
    lister = DirectoryLister(storage)

    chunks = [chunk async for chunk in lister.iter_pages("docs/")]

    # docs/, a, b, c, sub/, sub2/ at two entries per page
    assert len(chunks) == 3


@pytest.mark.asyncio
async def test_root_listing_groups_by_first_segment():
    storage = await _small_page_storage()
    listing = await DirectoryLister(storage).list("")

    assert [f.full_path for f in listing.files] == ["top.txt"]
    assert listing.folder_prefixes == ["docs/"]


@pytest.mark.asyncio
async def test_pages_are_merged_without_duplicates():
    storage = PagedStorage(
        {
            None: ListPage(
                prefix="p/",
                contents=[ObjectSummary(key="p/a.txt", size=1)],
                common_prefixes=["p/x/"],
                is_truncated=True,
                next_continuation_token="t1",
            ),
            "t1": ListPage(
                prefix="p/",
                contents=[ObjectSummary(key="p/a.txt", size=1), ObjectSummary(key="p/b.txt", size=2)],
                common_prefixes=["p/x/", "p/y/"],
                is_truncated=False,
            ),
        }
    )

    listing = await DirectoryLister(storage).list("p/")

    assert storage.tokens == [None, "t1"]
    assert [f.full_path for f in listing.files] == ["p/a.txt", "p/b.txt"]
    assert listing.folder_prefixes == ["p/x/", "p/y/"]


@pytest.mark.asyncio
async def test_empty_prefix_lists_nothing(storage):
    listing = await DirectoryLister(storage).list("nothing-here/")

    assert listing.files == []
    assert listing.folder_prefixes == []
