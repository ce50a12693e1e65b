"""Browse an S3-compatible bucket as folders and files."""
from bucketdrive.bootstrap import close_drive_resources, create_drive_session
from bucketdrive.application.services import DriveSession, SessionOptions, UploadRequest

__version__ = "0.1.0"

__all__ = ["close_drive_resources", "create_drive_session", "DriveSession", "SessionOptions", "UploadRequest", "__version__"]
