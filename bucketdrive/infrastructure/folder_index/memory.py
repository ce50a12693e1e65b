"""Process-local folder index store."""
from __future__ import annotations

from typing import Any


class InMemoryFolderIndexStore:
    def __init__(self) -> None:
        self._data: dict[str, list[dict[str, Any]]] = {}

    async def load(self, drive_id: str) -> list[dict[str, Any]]:
        return [dict(entry) for entry in self._data.get(drive_id, [])]

    async def save(self, drive_id: str, entries: list[dict[str, Any]]) -> None:
        self._data[drive_id] = [dict(entry) for entry in entries]
