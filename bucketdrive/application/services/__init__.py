"""Drive application services."""
from .directory_lister import DirectoryListing, DirectoryLister
from .drive_session import DriveSession, SessionOptions, UploadRequest
from .folder_index import FolderIndex
from .recursive_deleter import RecursiveDeleter
from .tag_editor import TagSetEditor
from .upload_task import MultipartUploadTask, UploadEvent, UploadEventType

__all__ = [
    "DirectoryListing",
    "DirectoryLister",
    "DriveSession",
    "SessionOptions",
    "UploadRequest",
    "FolderIndex",
    "RecursiveDeleter",
    "TagSetEditor",
    "MultipartUploadTask",
    "UploadEvent",
    "UploadEventType",
]
