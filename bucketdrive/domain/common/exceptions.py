"""Domain-level business exceptions shared by the domain, application and
infrastructure layers.

Validation errors are raised before any state is touched; store errors wrap
whatever the storage provider raised so callers only handle this hierarchy.
"""
from __future__ import annotations

from typing import Optional
from bucketdrive.shared.codes import BusinessCode


class BusinessException(Exception):
    """Base class for business exceptions"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
        message_key: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        self.message_key = message_key
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        code: int = BusinessCode.PARAM_VALIDATION_ERROR,
        error_type: str = "DomainValidationError",
        field: str | None = None,
        details: dict | None = None,
        message_key: str | None = None,
    ):
        super().__init__(
            code=code,
            message=message,
            error_type=error_type,
            details=details,
            field=field,
            message_key=message_key or "validation.failed",
        )


class InvalidFileNameException(DomainValidationException):
    def __init__(self, filename: str, *, reason: str = "File name cannot contain special characters (#$[]*/)."):
        super().__init__(
            reason,
            code=BusinessCode.INVALID_FILE_NAME,
            error_type="InvalidFileName",
            details={"filename": filename},
            field="filename",
            message_key="file.name.invalid",
        )


class DuplicateNameException(DomainValidationException):
    def __init__(self, name: str, *, parent: str):
        super().__init__(
            f"An entry named {name!r} already exists.",
            code=BusinessCode.DUPLICATE_NAME,
            error_type="DuplicateName",
            details={"name": name, "parent": parent},
            field="name",
            message_key="file.name.exists",
        )


class BlankTagKeyException(DomainValidationException):
    def __init__(self):
        super().__init__(
            "Tag key is blank.",
            code=BusinessCode.BLANK_TAG_KEY,
            error_type="BlankTagKey",
            field="key",
            message_key="tag.key.blank",
        )


class InvalidUploadStateException(BusinessException):
    def __init__(self, upload_key: str, state: str, action: str):
        super().__init__(
            code=BusinessCode.INVALID_STATE,
            message=f"Cannot {action} an upload in state {state!r}",
            error_type="InvalidUploadState",
            details={"key": upload_key, "state": state, "action": action},
            message_key="upload.state.invalid",
        )


class UploadNotFoundException(BusinessException):
    def __init__(self, upload_id: str):
        super().__init__(
            code=BusinessCode.NOT_FOUND,
            message="Upload not found",
            error_type="UploadNotFound",
            details={"upload_id": upload_id},
            message_key="upload.not_found",
        )


class TaggingNotSupportedException(BusinessException):
    def __init__(self, storage_type: str):
        super().__init__(
            code=BusinessCode.UNSUPPORTED_OPERATION,
            message=f"Tagging is not supported for storage type {storage_type!r}",
            error_type="TaggingNotSupported",
            details={"storage_type": storage_type},
            message_key="tag.unsupported",
        )


class StoreRequestException(BusinessException):
    """A remote store call failed. Recoverable by retrying or refreshing."""

    def __init__(self, operation: str, reason: str, *, details: Optional[dict] = None):
        merged = {"operation": operation}
        if details:
            merged.update(details)
        super().__init__(
            code=BusinessCode.STORAGE_ERROR,
            message=f"Store request failed during {operation}: {reason}",
            error_type="StoreRequestError",
            details=merged,
            message_key="storage.request.failed",
        )
        self.operation = operation


class PartialDeleteException(BusinessException):
    """A recursive delete stopped part way; earlier pages are already gone."""

    def __init__(self, prefix: str, deleted: int, reason: str, failed_keys: Optional[list[str]] = None):
        super().__init__(
            code=BusinessCode.PARTIAL_FAILURE,
            message=f"Recursive delete of {prefix!r} aborted after {deleted} objects: {reason}",
            error_type="PartialDelete",
            details={"prefix": prefix, "deleted": deleted, "failed_keys": failed_keys or []},
            message_key="storage.delete.partial",
        )
        self.prefix = prefix
        self.deleted = deleted
        self.failed_keys = failed_keys or []
