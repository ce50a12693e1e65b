"""Persistence port for locally created folders.

Object stores have no empty-folder primitive, so folders the user creates
are remembered client side, one serialized list per drive.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class FolderIndexStore(Protocol):
    async def load(self, drive_id: str) -> list[dict[str, Any]]: ...

    async def save(self, drive_id: str, entries: list[dict[str, Any]]) -> None: ...
