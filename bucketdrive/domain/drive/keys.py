"""Pure mapping between folder paths, file names and object keys."""
from __future__ import annotations

import re
from typing import Optional

from bucketdrive.domain.common.exceptions import InvalidFileNameException
from .entity import DriveFolder

DELIMITER = "/"
_RESERVED = re.compile(r"[#$\[\]*/]")


def validate_name(name: str) -> str:
    """Return ``name`` if it is a legal leaf segment, raise otherwise."""
    if not name or not name.strip():
        raise InvalidFileNameException(name, reason="Name cannot be blank.")
    if _RESERVED.search(name):
        raise InvalidFileNameException(name)
    return name


def key_for(folder: Optional[DriveFolder], file_name: str) -> str:
    validate_name(file_name)
    base = folder.full_path if folder is not None else ""
    return f"{base}{file_name}"


def child_prefix(parent_prefix: str, name: str) -> str:
    return f"{parent_prefix}{name}{DELIMITER}"


def leaf_name(key: str) -> str:
    return key.rsplit(DELIMITER, 1)[-1]


def normalize_prefix(path: Optional[str]) -> str:
    """Turn a user supplied folder path into a prefix ("" for root)."""
    if not path:
        return ""
    path = path.strip(DELIMITER)
    return f"{path}{DELIMITER}" if path else ""


def folder_name(prefix: str) -> str:
    """Name of the folder a prefix denotes: ``a/b/`` -> ``b``."""
    return leaf_name(prefix[:-1]) if prefix.endswith(DELIMITER) else leaf_name(prefix)


def parent_prefix(path: str) -> str:
    """Prefix of the folder containing ``path`` (a key or a folder prefix)."""
    trimmed = path[:-1] if path.endswith(DELIMITER) else path
    if DELIMITER not in trimmed:
        return ""
    return trimmed.rsplit(DELIMITER, 1)[0] + DELIMITER
