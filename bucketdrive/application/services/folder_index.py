"""Client-side index of folders that exist only because the user made them."""
from __future__ import annotations

from typing import Iterable, Optional

from bucketdrive.application.ports.folder_index import FolderIndexStore
from bucketdrive.core.logging_config import get_logger
from bucketdrive.domain.drive import DriveFolder

logger = get_logger(__name__)

PRUNE_PREFIX = "prefix"
PRUNE_SUBSTRING = "substring"


class FolderIndex:
    """Per-drive overlay merged with the remote common prefixes at read time.

    Every mutation writes the whole index back through the store; a failed
    write leaves the index as it was.
    """

    def __init__(self, store: FolderIndexStore, drive_id: str, *, prune_mode: str = PRUNE_PREFIX):
        if prune_mode not in (PRUNE_PREFIX, PRUNE_SUBSTRING):
            raise ValueError(f"Unknown prune mode: {prune_mode}")
        self._store = store
        self.drive_id = drive_id
        self.prune_mode = prune_mode
        self._entries: Optional[list[DriveFolder]] = None

    @property
    def entries(self) -> list[DriveFolder]:
        return list(self._entries or [])

    async def load(self) -> list[DriveFolder]:
        raw = await self._store.load(self.drive_id)
        self._entries = [DriveFolder.from_dict(item) for item in raw]
        logger.debug("Folder index loaded", drive_id=self.drive_id, count=len(self._entries))
        return self.entries

    async def _ensure_loaded(self) -> list[DriveFolder]:
        if self._entries is None:
            await self.load()
        return self._entries  # type: ignore[return-value]

    async def add(self, folder: DriveFolder) -> None:
        entries = await self._ensure_loaded()
        await self._persist(entries + [folder])
        logger.info("Folder index entry added", drive_id=self.drive_id, full_path=folder.full_path)

    async def remove(self, folder: DriveFolder) -> list[DriveFolder]:
        """Drop ``folder`` and its descendants; return what was removed."""
        entries = await self._ensure_loaded()
        removed = [f for f in entries if self._covers(folder.full_path, f.full_path)]
        await self._persist([f for f in entries if not self._covers(folder.full_path, f.full_path)])
        logger.info(
            "Folder index entries removed",
            drive_id=self.drive_id,
            full_path=folder.full_path,
            removed=len(removed),
        )
        return removed

    async def restore(self, folders: Iterable[DriveFolder]) -> None:
        entries = await self._ensure_loaded()
        known = {f.full_path for f in entries}
        await self._persist(entries + [f for f in folders if f.full_path not in known])

    async def children_of(self, parent: str, suppress: Optional[set[str]] = None) -> list[DriveFolder]:
        entries = await self._ensure_loaded()
        suppress = suppress or set()
        return [f for f in entries if f.parent == parent and f.full_path not in suppress]

    def _covers(self, target: str, candidate: str) -> bool:
        if self.prune_mode == PRUNE_SUBSTRING:
            return target in candidate
        return candidate.startswith(target)

    async def _persist(self, entries: list[DriveFolder]) -> None:
        # The in-memory copy only changes once the store accepted the write
        await self._store.save(self.drive_id, [f.to_dict() for f in entries])
        self._entries = entries
