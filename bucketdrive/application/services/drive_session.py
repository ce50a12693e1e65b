"""Folder navigation, uploads and deletes over one bucket.

The session is the single writer of the in-memory ``files``, ``folders``
and ``uploading_files`` collections and of the folder index.
"""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional, Sequence

from bucketdrive.application.ports.storage import ObjectStoragePort
from bucketdrive.application.services.directory_lister import DirectoryLister
from bucketdrive.application.services.folder_index import FolderIndex
from bucketdrive.application.services.recursive_deleter import RecursiveDeleter
from bucketdrive.application.services.tag_editor import TagSetEditor
from bucketdrive.application.services.upload_task import (
    MultipartUploadTask,
    UploadEvent,
    UploadEventType,
    UploadSource,
    source_size,
)
from bucketdrive.application.utils.storage import calculate_part_size, guess_content_type
from bucketdrive.core.logging_config import get_logger
from bucketdrive.domain.common.exceptions import (
    BusinessException,
    DomainValidationException,
    DuplicateNameException,
    UploadNotFoundException,
)
from bucketdrive.domain.drive import (
    ROOT_FOLDER,
    DriveFile,
    DriveFolder,
    Tag,
    UploadingFile,
    UploadState,
)
from bucketdrive.domain.drive import keys

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SessionOptions:
    signed_url_ttl: int = 24 * 3600
    min_part_size: int = 5 * 1024 * 1024
    max_parts: int = 10_000
    remote_collision_check: bool = False


@dataclass(frozen=True)
class UploadRequest:
    source: UploadSource
    name: str
    size: Optional[int] = None
    # target folder, the open one when None
    folder: Optional[DriveFolder] = None


class DriveSession:
    """UI-facing contract for one drive (bucket)."""

    def __init__(
        self,
        storage: ObjectStoragePort,
        folder_index: FolderIndex,
        *,
        options: Optional[SessionOptions] = None,
    ) -> None:
        self._storage = storage
        self._index = folder_index
        self._options = options or SessionOptions()
        self._lister = DirectoryLister(storage, signed_url_ttl=self._options.signed_url_ttl)
        self._deleter = RecursiveDeleter(storage, self._lister)
        self._tags = TagSetEditor(storage)

        self.current_folder: Optional[DriveFolder] = None
        self.files: Optional[list[DriveFile]] = None
        self.folders: Optional[list[DriveFolder]] = None
        self.uploading_files: list[UploadingFile] = []
        self.loading = False
        self._upload_requests: dict[str, UploadRequest] = {}

    @property
    def bucket_name(self) -> Optional[str]:
        return self._storage.info().bucket

    @property
    def bucket_url(self) -> Optional[str]:
        return self._storage.info().bucket_url

    @property
    def enable_tags(self) -> bool:
        return self._tags.enabled

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    async def open_folder(self, full_path: Optional[str] = None) -> DriveFolder:
        """Move to ``full_path`` ("" or None for root) and load its children."""
        prefix = keys.normalize_prefix(full_path)
        if prefix == "":
            folder = replace(ROOT_FOLDER, bucket_name=self.bucket_name, bucket_url=self.bucket_url)
        else:
            folder = DriveFolder(
                full_path=prefix,
                name=keys.folder_name(prefix),
                parent=keys.parent_prefix(prefix),
                bucket_name=self.bucket_name,
                bucket_url=self.bucket_url,
            )
        self.current_folder = folder
        self.files = None
        self.folders = None
        await self.refresh()
        return folder

    async def refresh(self) -> None:
        """Re-list the current folder from the store and merge the index."""
        folder = self._require_folder()
        self.loading = True
        try:
            listing = await self._lister.list(folder.full_path)
            remote = set(listing.folder_prefixes)
            local = await self._index.children_of(folder.full_path, suppress=remote)
            if self.current_folder is not folder:
                # navigated away while listing
                return
            self.files = listing.files
            self.folders = local + [self._remote_folder(p, folder.full_path) for p in listing.folder_prefixes]
            logger.info(
                "Folder loaded",
                prefix=folder.full_path,
                files=len(self.files),
                folders=len(self.folders),
            )
        finally:
            self.loading = False

    def _remote_folder(self, prefix: str, parent: str) -> DriveFolder:
        return DriveFolder(
            full_path=prefix,
            name=keys.folder_name(prefix),
            parent=parent,
            bucket_name=self.bucket_name,
            bucket_url=self.bucket_url,
        )

    def _require_folder(self) -> DriveFolder:
        if self.current_folder is None:
            raise DomainValidationException("No folder opened. Call open_folder() first.")
        return self.current_folder

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------
    async def add_folder(self, name: str) -> DriveFolder:
        parent = self._require_folder()
        keys.validate_name(name)
        full_path = keys.child_prefix(parent.full_path, name)
        if any(f.full_path == full_path for f in self.folders or []):
            raise DuplicateNameException(name, parent=parent.full_path)

        folder = DriveFolder(
            full_path=full_path,
            name=name,
            parent=parent.full_path,
            bucket_name=self.bucket_name,
            bucket_url=self.bucket_url,
            created_at=_utcnow(),
        )
        await self._index.add(folder)
        self.folders = (self.folders or []) + [folder]
        return folder

    async def remove_folder(self, folder: DriveFolder) -> int:
        """Delete a folder and everything below it.

        The folder disappears from the view and the index first; if saving
        the index or the remote delete fails both are restored and the error
        re-raised. Some objects may already be gone at that point, a
        ``refresh()`` shows the real state.
        """
        previous = list(self.folders) if self.folders is not None else None
        if self.folders is not None:
            self.folders = [f for f in self.folders if f.full_path != folder.full_path]

        pruned: list[DriveFolder] = []
        try:
            pruned = await self._index.remove(folder)
            deleted = await self._deleter.delete_prefix(folder.full_path)
        except Exception:
            logger.error("Folder delete failed, restoring view", full_path=folder.full_path)
            self.folders = previous
            if pruned:
                await self._index.restore(pruned)
            raise
        return deleted

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------
    async def remove_file(self, file: DriveFile) -> None:
        previous = list(self.files) if self.files is not None else None
        if self.files is not None:
            self.files = [f for f in self.files if f.full_path != file.full_path]
        try:
            await self._storage.delete(file.full_path)
        except BusinessException:
            logger.error("File delete failed, restoring view", key=file.full_path)
            self.files = previous
            raise

    async def upload_file(
        self,
        source: UploadSource,
        name: str,
        *,
        size: Optional[int] = None,
    ) -> Optional[DriveFile]:
        """Upload one file into the current folder.

        Returns the committed file, or ``None`` when the upload ended in
        error (the entry then stays in ``uploading_files`` with
        ``error=True`` until retried or dismissed).
        """
        request = UploadRequest(source=source, name=name, size=size, folder=self._require_folder())
        key = await self._validate_upload(request)
        return await self._run_upload(request, key)

    async def upload_files(self, requests: Sequence[UploadRequest]) -> list[Optional[DriveFile]]:
        """Validate every request, then upload them concurrently.

        Every upload runs to its end even when another one raises; the
        first such error is re-raised afterwards.
        """
        current = self._require_folder()
        seen: set[str] = set()
        planned: list[tuple[UploadRequest, str]] = []
        for req in requests:
            req = replace(req, folder=req.folder or current)
            key = await self._validate_upload(req)
            if key in seen:
                raise DuplicateNameException(req.name, parent=req.folder.full_path)
            seen.add(key)
            planned.append((req, key))

        results = await asyncio.gather(
            *(self._run_upload(req, key) for req, key in planned),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return list(results)

    def _is_open(self, folder: DriveFolder) -> bool:
        return self.current_folder is not None and self.current_folder.full_path == folder.full_path

    async def _validate_upload(self, request: UploadRequest) -> str:
        folder = request.folder or self._require_folder()
        key = keys.key_for(folder, request.name)
        opened = self._is_open(folder)
        # Loaded files only cover the open folder; any other one asks the store
        if opened and any(f.name == request.name for f in self.files or []):
            raise DuplicateNameException(request.name, parent=folder.full_path)
        if (self._options.remote_collision_check or not opened) and await self._storage.exists(key):
            raise DuplicateNameException(request.name, parent=folder.full_path)
        return key

    async def _run_upload(self, request: UploadRequest, key: str) -> Optional[DriveFile]:
        folder = request.folder or self._require_folder()
        upload_id = uuid.uuid4().hex
        content_type = guess_content_type(request.name)
        total = request.size if request.size is not None else source_size(request.source)
        task = MultipartUploadTask(
            self._storage,
            key,
            request.source,
            content_type=content_type,
            size=total,
            part_size=calculate_part_size(
                total,
                min_part_size=self._options.min_part_size,
                max_parts=self._options.max_parts,
            ),
        )
        self._upload_requests[upload_id] = replace(request, folder=folder)
        entry = UploadingFile(id=upload_id, name=request.name, key=key, task=task)

        runner = asyncio.create_task(task.run())
        async for event in task.events():
            self._apply_upload_event(entry, event)
        outcome = await runner

        if outcome is None:
            return None

        self.uploading_files = [u for u in self.uploading_files if u.id != upload_id]
        self._upload_requests.pop(upload_id, None)
        presigned = await self._storage.generate_presigned_url(key, expires_in=self._options.signed_url_ttl)
        new_file = DriveFile(
            full_path=key,
            name=request.name,
            parent=folder.full_path,
            size=task.total,
            content_type=content_type,
            bucket_name=self.bucket_name,
            bucket_url=self.bucket_url,
            url=presigned.url,
            created_at=_utcnow(),
        )
        if self._is_open(folder):
            self.files = (self.files or []) + [new_file]
        logger.info("File uploaded", key=key, size=task.total)
        return new_file

    def _apply_upload_event(self, entry: UploadingFile, event: UploadEvent) -> None:
        if event.type is UploadEventType.INITIATED:
            self.uploading_files = self.uploading_files + [entry]
        elif event.type is UploadEventType.PROGRESS:
            entry.progress = event.percent
        elif event.type is UploadEventType.PAUSED:
            entry.state = UploadState.PAUSED
        elif event.type is UploadEventType.RESUMED:
            entry.state = UploadState.RUNNING
        elif event.type is UploadEventType.ERROR:
            entry.state = UploadState.ERROR
            entry.error = True
            entry.error_message = event.message
            if entry not in self.uploading_files:
                self.uploading_files = self.uploading_files + [entry]

    def _find_upload(self, upload_id: str) -> UploadingFile:
        for entry in self.uploading_files:
            if entry.id == upload_id:
                return entry
        raise UploadNotFoundException(upload_id)

    def pause_upload(self, upload_id: str) -> None:
        self._find_upload(upload_id).task.pause()

    def resume_upload(self, upload_id: str) -> None:
        self._find_upload(upload_id).task.resume()

    def dismiss_upload(self, upload_id: str) -> None:
        """Forget a failed upload."""
        entry = self._find_upload(upload_id)
        if not entry.error:
            raise DomainValidationException("Only failed uploads can be dismissed", details={"upload_id": upload_id})
        self.uploading_files = [u for u in self.uploading_files if u.id != upload_id]
        self._upload_requests.pop(upload_id, None)

    async def retry_upload(self, upload_id: str) -> Optional[DriveFile]:
        """Start a failed upload again from scratch under a new id.

        The upload goes back to the folder it was started in, wherever the
        session has navigated since. The failed entry is only dropped once
        the name is known to be free there.
        """
        entry = self._find_upload(upload_id)
        request = self._upload_requests.get(upload_id)
        if not entry.error or request is None:
            raise DomainValidationException("Only failed uploads can be retried", details={"upload_id": upload_id})
        key = await self._validate_upload(request)
        self.dismiss_upload(upload_id)
        return await self._run_upload(request, key)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------
    async def list_tags(self, file: DriveFile) -> list[Tag]:
        return await self._tags.list(file)

    async def add_tag(self, file: DriveFile, key: str, value: str) -> None:
        await self._tags.add(file, key, value)

    async def edit_tag(self, file: DriveFile, prev_tag: Tag, new_tag: Tag) -> None:
        await self._tags.edit(file, prev_tag, new_tag)

    async def remove_tag(self, file: DriveFile, key: str) -> None:
        await self._tags.remove(file, key)
