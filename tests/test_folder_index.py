import pytest

from bucketdrive.application.services.folder_index import PRUNE_PREFIX, PRUNE_SUBSTRING, FolderIndex
from bucketdrive.domain.drive import DriveFolder, keys
from bucketdrive.infrastructure.folder_index import InMemoryFolderIndexStore


class RefusingStore(InMemoryFolderIndexStore):
    def __init__(self):
        super().__init__()
        self.refuse = False

    async def save(self, drive_id, entries):
        if self.refuse:
            raise OSError("read-only file system")
        await super().save(drive_id, entries)


def _folder(path: str) -> DriveFolder:
    return DriveFolder(full_path=path, name=keys.folder_name(path), parent=keys.parent_prefix(path))


async def _index(store, mode=PRUNE_PREFIX) -> FolderIndex:
    index = FolderIndex(store, "drive-1", prune_mode=mode)
    for path in ["a/", "a/b/", "xa/", "ba/", "c/"]:
        await index.add(_folder(path))
    return index


@pytest.mark.asyncio
async def test_prefix_mode_removes_only_descendants():
    index = await _index(InMemoryFolderIndexStore())

    removed = await index.remove(_folder("a/"))

    assert sorted(f.full_path for f in removed) == ["a/", "a/b/"]
    assert sorted(f.full_path for f in index.entries) == ["ba/", "c/", "xa/"]


@pytest.mark.asyncio
async def test_substring_mode_keeps_legacy_pruning():
    index = await _index(InMemoryFolderIndexStore(), mode=PRUNE_SUBSTRING)

    await index.remove(_folder("a/"))

    assert [f.full_path for f in index.entries] == ["c/"]


@pytest.mark.asyncio
async def test_children_are_filtered_by_parent_and_suppressed_by_remote():
    index = await _index(InMemoryFolderIndexStore())

    children = await index.children_of("", suppress={"c/"})

    assert [f.full_path for f in children] == ["a/", "xa/", "ba/"]
    assert [f.full_path for f in await index.children_of("a/")] == ["a/b/"]


@pytest.mark.asyncio
async def test_entries_persist_across_instances():
    store = InMemoryFolderIndexStore()
    await _index(store)

    reloaded = FolderIndex(store, "drive-1")
    await reloaded.load()
    other_drive = FolderIndex(store, "drive-2")

    assert len(reloaded.entries) == 5
    assert await other_drive.children_of("") == []


@pytest.mark.asyncio
async def test_restore_puts_back_removed_entries_once():
    store = InMemoryFolderIndexStore()
    index = await _index(store)

    removed = await index.remove(_folder("a/"))
    await index.restore(removed)
    await index.restore(removed)

    reloaded = FolderIndex(store, "drive-1")
    assert sorted(f.full_path for f in await reloaded.load()) == ["a/", "a/b/", "ba/", "c/", "xa/"]


@pytest.mark.asyncio
async def test_failed_save_leaves_entries_unchanged():
    store = RefusingStore()
    index = await _index(store)
    store.refuse = True

    with pytest.raises(OSError):
        await index.remove(_folder("a/"))
    with pytest.raises(OSError):
        await index.add(_folder("d/"))

    assert sorted(f.full_path for f in index.entries) == ["a/", "a/b/", "ba/", "c/", "xa/"]

def test_unknown_prune_mode_rejected():
    with pytest.raises(ValueError):
        FolderIndex(InMemoryFolderIndexStore(), "drive-1", prune_mode="glob")
