import asyncio
import hashlib
from typing import Optional

import pytest

from bucketdrive.application.ports.storage import CompletedPart, StorageInfo, UploadOutcome
from bucketdrive.application.services.upload_task import MultipartUploadTask, TaskState, UploadEventType
from bucketdrive.application.utils.storage import MIB, calculate_part_size
from bucketdrive.domain.common.exceptions import InvalidUploadStateException, StoreRequestException


class RecordingStorage:
    """Upload half of the storage port; keeps part sizes, not bytes."""

    def __init__(self):
        self.single_uploads: list[tuple[str, int]] = []
        self.part_numbers: list[int] = []
        self.part_sizes: list[int] = []
        self.part_data: dict[int, bytes] = {}
        self.keep_data = False
        self.completed: Optional[list[CompletedPart]] = None
        self.aborted: list[tuple[str, str]] = []

    def info(self) -> StorageInfo:
        return StorageInfo(type="memory", bucket="b", region=None)

    async def upload(self, data, key, content_type=None) -> UploadOutcome:
        self.single_uploads.append((key, len(data)))
        return UploadOutcome(key=key, etag="e", size=len(data), content_type=content_type)

    async def multipart_upload_start(self, key, content_type=None) -> str:
        return "upload-1"

    async def multipart_upload_part(self, key, upload_id, part_number, data) -> CompletedPart:
        self.part_numbers.append(part_number)
        self.part_sizes.append(len(data))
        if self.keep_data:
            self.part_data[part_number] = data
        return CompletedPart(part_number=part_number, etag=hashlib.md5(data).hexdigest())

    async def multipart_upload_complete(self, key, upload_id, parts) -> UploadOutcome:
        self.completed = list(parts)
        return UploadOutcome(key=key, etag="done", size=0)

    async def multipart_upload_abort(self, key, upload_id) -> None:
        self.aborted.append((key, upload_id))


class GatedStorage(RecordingStorage):
    """Holds part 2 until the test opens the gate."""

    def __init__(self):
        super().__init__()
        self.part2_started = asyncio.Event()
        self.gate = asyncio.Event()

    async def multipart_upload_part(self, key, upload_id, part_number, data):
        if part_number == 2:
            self.part2_started.set()
            await self.gate.wait()
        return await super().multipart_upload_part(key, upload_id, part_number, data)


class FailingStorage(RecordingStorage):
    async def multipart_upload_part(self, key, upload_id, part_number, data):
        if part_number == 2:
            raise StoreRequestException("multipart_upload_part", "connection reset")
        return await super().multipart_upload_part(key, upload_id, part_number, data)


async def _run(task):
    runner = asyncio.create_task(task.run())
    events = [event async for event in task.events()]
    return await runner, events


@pytest.mark.asyncio
async def test_fifty_mib_upload_sends_five_parts_in_order():
    storage = RecordingStorage()
    source = bytes(50 * MIB)
    task = MultipartUploadTask(
        storage,
        "videos/clip.bin",
        source,
        content_type="application/octet-stream",
        part_size=calculate_part_size(len(source)),
    )

    outcome, events = await _run(task)

    assert outcome is not None
    assert storage.part_numbers == [1, 2, 3, 4, 5]
    assert storage.part_sizes == [10 * MIB] * 5
    assert [p.part_number for p in storage.completed] == [1, 2, 3, 4, 5]

    types = [e.type for e in events]
    assert types[0] is UploadEventType.INITIATED
    assert types[-1] is UploadEventType.COMPLETED
    progress = [e for e in events if e.type is UploadEventType.PROGRESS]
    assert [e.loaded for e in progress] == [n * 10 * MIB for n in range(1, 6)]
    assert progress[-1].percent == 100.0
    assert task.state is TaskState.COMPLETED


@pytest.mark.asyncio
async def test_small_source_uses_single_put():
    storage = RecordingStorage()
    task = MultipartUploadTask(storage, "a.txt", b"hello", content_type="text/plain", part_size=10)

    outcome, events = await _run(task)

    assert outcome.size == 5
    assert storage.single_uploads == [("a.txt", 5)]
    assert storage.part_numbers == []
    assert [e.type for e in events] == [
        UploadEventType.INITIATED,
        UploadEventType.PROGRESS,
        UploadEventType.COMPLETED,
    ]


@pytest.mark.asyncio
async def test_empty_source_completes():
    storage = RecordingStorage()
    task = MultipartUploadTask(storage, "empty", b"", content_type="text/plain", part_size=10)

    outcome, events = await _run(task)

    assert outcome is not None
    assert events[-1].type is UploadEventType.COMPLETED
    assert events[-1].percent == 100.0


@pytest.mark.asyncio
async def test_file_path_source_is_read_by_range(tmp_path):
    path = tmp_path / "data.bin"
    payload = b"0123456789"
    path.write_bytes(payload)
    storage = RecordingStorage()
    storage.keep_data = True
    task = MultipartUploadTask(storage, "data.bin", path, content_type="application/octet-stream", part_size=4)

    outcome, _ = await _run(task)

    assert outcome is not None
    assert task.total == len(payload)
    assert b"".join(storage.part_data[n] for n in (1, 2, 3)) == payload


@pytest.mark.asyncio
async def test_pause_holds_next_part_and_resume_continues():
    storage = GatedStorage()
    task = MultipartUploadTask(storage, "big.bin", b"x" * 12, content_type="application/octet-stream", part_size=4)
    runner = asyncio.create_task(task.run())

    await storage.part2_started.wait()
    task.pause()
    task.pause()  # already paused
    assert task.state is TaskState.PAUSED

    # part 2 was already in flight; it finishes but part 3 must wait
    storage.gate.set()
    for _ in range(20):
        await asyncio.sleep(0)
    assert storage.part_numbers == [1, 2]
    assert task.state is TaskState.PAUSED

    task.resume()
    outcome = await runner

    assert outcome is not None
    assert storage.part_numbers == [1, 2, 3]
    assert task.completed_parts == [1, 2, 3]

    types = [event.type async for event in task.events()]
    assert types.count(UploadEventType.PAUSED) == 1
    assert types.count(UploadEventType.RESUMED) == 1
    assert types.index(UploadEventType.PAUSED) < types.index(UploadEventType.RESUMED)
    assert types[-1] is UploadEventType.COMPLETED


@pytest.mark.asyncio
async def test_part_failure_aborts_and_emits_error():
    storage = FailingStorage()
    task = MultipartUploadTask(storage, "big.bin", b"x" * 12, content_type="application/octet-stream", part_size=4)

    outcome, events = await _run(task)

    assert outcome is None
    assert task.state is TaskState.FAILED
    assert storage.aborted == [("big.bin", "upload-1")]
    assert events[-1].type is UploadEventType.ERROR
    assert "connection reset" in events[-1].message
    assert not any(e.type is UploadEventType.COMPLETED for e in events)


@pytest.mark.asyncio
async def test_pause_and_resume_rejected_outside_running_states():
    storage = FailingStorage()
    task = MultipartUploadTask(storage, "big.bin", b"x" * 12, content_type="application/octet-stream", part_size=4)

    with pytest.raises(InvalidUploadStateException):
        task.pause()

    await _run(task)

    with pytest.raises(InvalidUploadStateException):
        task.pause()
    with pytest.raises(InvalidUploadStateException):
        task.resume()


@pytest.mark.asyncio
async def test_task_runs_once():
    storage = RecordingStorage()
    task = MultipartUploadTask(storage, "a.txt", b"hello", content_type="text/plain", part_size=10)
    await _run(task)

    with pytest.raises(InvalidUploadStateException):
        await task.run()
