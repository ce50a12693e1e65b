"""Drive domain exports."""
from .entity import (
    ROOT_FOLDER,
    DriveFile,
    DriveFolder,
    Tag,
    UploadingFile,
    UploadState,
)
from . import keys

__all__ = [
    "ROOT_FOLDER",
    "DriveFile",
    "DriveFolder",
    "Tag",
    "UploadingFile",
    "UploadState",
    "keys",
]
