"""Folder index persisted as one JSON document per drive."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from bucketdrive.core.logging_config import get_logger

logger = get_logger(__name__)


class JsonFileFolderIndexStore:
    """Stores ``local_folders_<drive_id>.json`` files under ``base_path``."""

    def __init__(self, base_path: str | os.PathLike[str]):
        self.base_path = Path(base_path)

    def path_for(self, drive_id: str) -> Path:
        return self.base_path / f"local_folders_{drive_id}.json"

    async def load(self, drive_id: str) -> list[dict[str, Any]]:
        path = self.path_for(drive_id)
        if not await aiofiles.os.path.exists(path):
            return []
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            content = await f.read()
        if not content.strip():
            return []
        data = json.loads(content)
        if not isinstance(data, list):
            raise ValueError(f"Folder index {path} does not hold a list")
        return data

    async def save(self, drive_id: str, entries: list[dict[str, Any]]) -> None:
        path = self.path_for(drive_id)
        await aiofiles.os.makedirs(self.base_path, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(entries, ensure_ascii=False))
        # Readers never see a half written file
        await aiofiles.os.replace(tmp_path, path)
        logger.debug("Folder index written", path=str(path), count=len(entries))
