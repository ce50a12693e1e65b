"""Resumable multipart upload of a single file.

A task streams typed lifecycle events through its own queue::

    initiated -> progress* -> (paused <-> resumed)* -> completed | error

``completed`` and ``error`` are terminal: the stream ends after either.
Pausing parks the task between parts; parts the store already acknowledged
are kept and never sent again.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Optional, Union

import aiofiles

from bucketdrive.application.ports.storage import (
    CompletedPart,
    ObjectStoragePort,
    UploadOutcome,
)
from bucketdrive.application.utils.storage import part_count
from bucketdrive.core.logging_config import get_logger
from bucketdrive.domain.common.exceptions import BusinessException, InvalidUploadStateException

logger = get_logger(__name__)

UploadSource = Union[bytes, bytearray, str, Path]


class UploadEventType(str, Enum):
    INITIATED = "initiated"
    PROGRESS = "progress"
    PAUSED = "paused"
    RESUMED = "resumed"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_EVENTS = frozenset({UploadEventType.COMPLETED, UploadEventType.ERROR})


@dataclass(frozen=True)
class UploadEvent:
    type: UploadEventType
    key: str
    loaded: int = 0
    total: int = 0
    message: Optional[str] = None

    @property
    def percent(self) -> float:
        if self.total <= 0:
            return 100.0
        ratio = min(max(self.loaded / self.total, 0.0), 1.0)
        return round(ratio * 100, 2)

    @property
    def is_terminal(self) -> bool:
        return self.type in TERMINAL_EVENTS


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    FAILED = "failed"


class MultipartUploadTask:
    """Upload one byte source to ``key`` as one or more parts."""

    def __init__(
        self,
        storage: ObjectStoragePort,
        key: str,
        source: UploadSource,
        *,
        content_type: str,
        part_size: int,
        size: Optional[int] = None,
    ) -> None:
        if part_size <= 0:
            raise ValueError("part_size must be positive")
        self.storage = storage
        self.key = key
        self.source = source
        self.content_type = content_type
        self.part_size = part_size
        self.total = size if size is not None else source_size(source)
        self.state = TaskState.PENDING
        self._started = False
        self.upload_id: Optional[str] = None
        self.loaded = 0
        self.outcome: Optional[UploadOutcome] = None
        self._parts: dict[int, CompletedPart] = {}
        self._events: asyncio.Queue[UploadEvent] = asyncio.Queue()
        self._resume = asyncio.Event()
        self._resume.set()

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        return self.state in (TaskState.COMPLETED, TaskState.FAILED)

    @property
    def completed_parts(self) -> list[int]:
        return sorted(self._parts)

    def pause(self) -> None:
        if self.state is TaskState.PAUSED:
            return
        if self.state is not TaskState.RUNNING:
            raise InvalidUploadStateException(self.key, self.state.value, "pause")
        self.state = TaskState.PAUSED
        self._resume.clear()
        self._emit(UploadEventType.PAUSED)
        logger.info("Upload paused", key=self.key, loaded=self.loaded, total=self.total)

    def resume(self) -> None:
        if self.state is TaskState.RUNNING:
            return
        if self.state is not TaskState.PAUSED:
            raise InvalidUploadStateException(self.key, self.state.value, "resume")
        self.state = TaskState.RUNNING
        self._resume.set()
        self._emit(UploadEventType.RESUMED)
        logger.info("Upload resumed", key=self.key, loaded=self.loaded, total=self.total)

    async def events(self) -> AsyncIterator[UploadEvent]:
        """Yield events in emission order until a terminal one."""
        while True:
            event = await self._events.get()
            yield event
            if event.is_terminal:
                return

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    async def run(self) -> Optional[UploadOutcome]:
        """Drive the upload to a terminal state.

        Store failures do not propagate; they end the stream with an
        ``error`` event and the method returns ``None``.
        """
        if self._started:
            raise InvalidUploadStateException(self.key, self.state.value, "start")
        self._started = True
        try:
            if self.total <= self.part_size:
                outcome = await self._upload_single()
            else:
                outcome = await self._upload_multipart()
        except Exception as exc:
            await self._fail(exc)
            return None

        self.outcome = outcome
        self.state = TaskState.COMPLETED
        self._emit(UploadEventType.COMPLETED)
        logger.info("Upload completed", key=self.key, size=self.total, parts=len(self._parts) or 1)
        return outcome

    async def _upload_single(self) -> UploadOutcome:
        self._initiated()
        data = await _read_range(self.source, 0, self.total)
        outcome = await self.storage.upload(data, self.key, content_type=self.content_type)
        self._advance(len(data))
        return outcome

    async def _upload_multipart(self) -> UploadOutcome:
        self.upload_id = await self.storage.multipart_upload_start(self.key, self.content_type)
        self._initiated()
        logger.info(
            "Multipart upload initiated",
            key=self.key,
            upload_id=self.upload_id,
            part_size=self.part_size,
            parts=part_count(self.total, self.part_size),
        )

        for part_number in range(1, part_count(self.total, self.part_size) + 1):
            await self._resume.wait()
            if part_number in self._parts:
                continue
            offset = (part_number - 1) * self.part_size
            length = min(self.part_size, self.total - offset)
            data = await _read_range(self.source, offset, length)
            part = await self.storage.multipart_upload_part(self.key, self.upload_id, part_number, data)
            self._parts[part_number] = part
            self._advance(length)

        await self._resume.wait()
        parts = [self._parts[n] for n in sorted(self._parts)]
        return await self.storage.multipart_upload_complete(self.key, self.upload_id, parts)

    def _initiated(self) -> None:
        self.state = TaskState.RUNNING
        self._emit(UploadEventType.INITIATED)

    def _advance(self, nbytes: int) -> None:
        self.loaded = min(self.loaded + nbytes, self.total)
        self._emit(UploadEventType.PROGRESS)

    async def _fail(self, exc: Exception) -> None:
        message = getattr(exc, "message", None) or str(exc)
        logger.error("Upload failed", key=self.key, error=message, upload_id=self.upload_id)
        if self.upload_id is not None:
            try:
                await self.storage.multipart_upload_abort(self.key, self.upload_id)
            except BusinessException as abort_exc:
                logger.warning("Multipart abort failed", key=self.key, error=str(abort_exc))
        self.state = TaskState.FAILED
        self._resume.set()
        self._emit(UploadEventType.ERROR, message=message)

    def _emit(self, event_type: UploadEventType, message: Optional[str] = None) -> None:
        self._events.put_nowait(
            UploadEvent(type=event_type, key=self.key, loaded=self.loaded, total=self.total, message=message)
        )


def source_size(source: UploadSource) -> int:
    if isinstance(source, (bytes, bytearray)):
        return len(source)
    return Path(source).stat().st_size


async def _read_range(source: UploadSource, offset: int, length: int) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        return bytes(memoryview(source)[offset:offset + length])
    async with aiofiles.open(source, "rb") as f:
        await f.seek(offset)
        return await f.read(length)
