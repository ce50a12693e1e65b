"""Domain entities for the folder/file view over a flat bucket."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return _ensure_utc(value)
    if isinstance(value, str) and value:
        return _ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    return None


@dataclass
class DriveFolder:
    """A folder is a key prefix. ``full_path`` always ends with "/" except root."""

    full_path: str
    name: str
    parent: Optional[str]
    bucket_name: Optional[str] = None
    bucket_url: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.created_at = _ensure_utc(self.created_at)

    @property
    def is_root(self) -> bool:
        return self.full_path == ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "full_path": self.full_path,
            "name": self.name,
            "parent": self.parent,
            "bucket_name": self.bucket_name,
            "bucket_url": self.bucket_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DriveFolder":
        return cls(
            full_path=data["full_path"],
            name=data.get("name", ""),
            parent=data.get("parent"),
            bucket_name=data.get("bucket_name"),
            bucket_url=data.get("bucket_url"),
            created_at=_parse_dt(data.get("created_at")),
        )


ROOT_FOLDER = DriveFolder(full_path="", name="", parent=None)


@dataclass
class DriveFile:
    """A committed object. ``url`` is a signed capability that expires."""

    full_path: str
    name: str
    parent: str
    size: int
    content_type: str
    bucket_name: Optional[str]
    bucket_url: Optional[str]
    url: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.created_at = _ensure_utc(self.created_at)


@dataclass(frozen=True)
class Tag:
    key: str
    value: str


class UploadState(str, Enum):
    RUNNING = "running"
    PAUSED = "paused"
    ERROR = "error"


@dataclass
class UploadingFile:
    """An upload in flight, visible until it completes or is dismissed."""

    id: str
    name: str
    key: str
    state: UploadState = UploadState.RUNNING
    progress: float = 0.0
    error: bool = False
    error_message: Optional[str] = None
    task: Any = field(default=None, repr=False, compare=False)
