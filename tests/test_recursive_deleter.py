import pytest

from bucketdrive.application.ports.storage import ListPage, ObjectSummary, StorageInfo
from bucketdrive.application.services.recursive_deleter import RecursiveDeleter
from bucketdrive.domain.common.exceptions import PartialDeleteException, StoreRequestException
from bucketdrive.infrastructure.adapters.storage_port import StorageProviderPortAdapter
from bucketdrive.infrastructure.external.storage.config import StorageConfig
from bucketdrive.infrastructure.external.storage.providers.memory import InMemoryProvider

TREE = [
    "root/a.txt",
    "root/b/c.txt",
    "root/b/d/e.txt",
    "root/f/g.txt",
    "root/h.txt",
    "rooted.txt",
    "other/z.txt",
]


class RecordingAdapter(StorageProviderPortAdapter):
    def __init__(self, provider):
        super().__init__(provider)
        self.batches = []

    async def batch_delete(self, keys):
        self.batches.append(list(keys))
        return await super().batch_delete(keys)


class RejectingAdapter(StorageProviderPortAdapter):
    async def batch_delete(self, keys):
        return {key: key != "root/h.txt" for key in keys}


class BrokenAdapter(StorageProviderPortAdapter):
    async def batch_delete(self, keys):
        raise StoreRequestException("batch_delete", "service unavailable")


class SinglePageStorage:
    def __init__(self, count):
        self.page = ListPage(prefix="bulk/", contents=[ObjectSummary(key=f"bulk/{i:05d}", size=1) for i in range(count)])
        self.batch_sizes = []

    def info(self):
        return StorageInfo(type="memory", bucket="b", region=None)

    async def list_objects_page(self, prefix="", delimiter="/", continuation_token=None):
        if prefix != "bulk/" or not self.page.contents:
            return ListPage(prefix=prefix)
        page, self.page = self.page, ListPage(prefix=prefix)
        return page

    async def batch_delete(self, keys):
        self.batch_sizes.append(len(keys))
        return {key: True for key in keys}


async def _provider(max_keys=2) -> InMemoryProvider:
    provider = InMemoryProvider(StorageConfig(type="memory", bucket="test-bucket", max_keys=max_keys))
    for key in TREE:
        await provider.upload(b"x", key)
    return provider


@pytest.mark.asyncio
async def test_delete_prefix_removes_whole_subtree_children_first():
    provider = await _provider()
    storage = RecordingAdapter(provider)

    deleted = await RecursiveDeleter(storage).delete_prefix("root/")

    assert deleted == 5
    assert provider.keys == ["other/z.txt", "rooted.txt"]
    assert storage.batches == [
        ["root/b/d/e.txt"],
        ["root/b/c.txt"],
        ["root/a.txt"],
        ["root/f/g.txt"],
        ["root/h.txt"],
    ]


@pytest.mark.asyncio
async def test_delete_prefix_twice_is_a_noop():
    provider = await _provider()
    deleter = RecursiveDeleter(StorageProviderPortAdapter(provider))

    await deleter.delete_prefix("root/")
    assert await deleter.delete_prefix("root/") == 0
    assert provider.keys == ["other/z.txt", "rooted.txt"]


@pytest.mark.asyncio
async def test_rejected_keys_raise_partial_delete():
    provider = await _provider(max_keys=1000)

    with pytest.raises(PartialDeleteException) as exc_info:
        await RecursiveDeleter(RejectingAdapter(provider)).delete_prefix("root/")

    assert exc_info.value.failed_keys == ["root/h.txt"]
    assert exc_info.value.deleted >= 1


@pytest.mark.asyncio
async def test_store_failure_raises_partial_delete():
    provider = await _provider()

    with pytest.raises(PartialDeleteException) as exc_info:
        await RecursiveDeleter(BrokenAdapter(provider)).delete_prefix("root/")

    assert exc_info.value.deleted == 0
    assert "service unavailable" in exc_info.value.message
    assert "root/a.txt" in provider.keys


@pytest.mark.asyncio
async def test_large_pages_are_deleted_in_chunks_of_1000():
    storage = SinglePageStorage(2500)

    deleted = await RecursiveDeleter(storage).delete_prefix("bulk/")

    assert deleted == 2500
    assert storage.batch_sizes == [1000, 1000, 500]
