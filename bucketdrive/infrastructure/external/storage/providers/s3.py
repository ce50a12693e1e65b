"""AWS S3 (and S3-compatible) storage provider implementation."""
import hashlib
from typing import Optional, Any
import anyio
from functools import partial

from bucketdrive.core.logging_config import get_logger
from ..base import StorageProvider
from ..config import StorageConfig
from ..models import (
    ListObjectsResult,
    ObjectTag,
    PresignedRequest,
    StorageObject,
    UploadedPart,
    UploadResult,
)
from ..exceptions import (
    StorageError,
    NotFoundError,
    PermissionDeniedError,
    TransientError,
    ConfigurationError,
)

logger = get_logger(__name__)


class S3Provider(StorageProvider):
    """S3 storage provider backed by a boto3 client."""

    def __init__(
        self,
        client: Any,  # boto3 S3 client
        config: StorageConfig
    ):
        """Initialize S3 provider.

        Args:
            client: Boto3 S3 client instance
            config: Storage configuration
        """
        self.client = client
        self.config = config
        self.bucket = config.bucket
        self.region = config.region or "us-east-1"

    async def upload(
        self,
        file: bytes,
        key: str,
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Upload file to S3 with a single PutObject."""
        try:
            extra_args = {}
            if content_type:
                extra_args["ContentType"] = content_type

            # boto3 is synchronous; run it in the thread pool
            response = await anyio.to_thread.run_sync(
                partial(
                    self.client.put_object,
                    Bucket=self.bucket,
                    Key=key,
                    Body=file,
                    **extra_args
                )
            )

            etag = (response or {}).get("ETag", "").strip('"') or hashlib.md5(file).hexdigest()
            logger.info("Uploaded to S3", key=key, size=len(file))
            return UploadResult(key=key, etag=etag, size=len(file), content_type=content_type)

        except Exception as e:
            self._handle_exception(e, f"upload {key}")

    async def delete(self, key: str) -> bool:
        """Delete file from S3."""
        try:
            await anyio.to_thread.run_sync(
                partial(
                    self.client.delete_object,
                    Bucket=self.bucket,
                    Key=key
                )
            )
            logger.info("Deleted from S3", key=key)
            return True
        except Exception as e:
            self._handle_exception(e, f"delete {key}")

    async def exists(self, key: str) -> bool:
        """Check if file exists in S3."""
        try:
            await anyio.to_thread.run_sync(
                partial(
                    self.client.head_object,
                    Bucket=self.bucket,
                    Key=key
                )
            )
            return True
        except Exception as e:
            code = getattr(e, "response", {}).get("Error", {}).get("Code", "")
            if code in ("404", "NoSuchKey", "NotFound"):
                return False
            self._handle_exception(e, f"exists {key}")

    async def list_objects_page(
        self,
        prefix: str = "",
        delimiter: Optional[str] = "/",
        continuation_token: Optional[str] = None,
        max_keys: Optional[int] = None
    ) -> ListObjectsResult:
        """List one ListObjectsV2 page."""
        try:
            args = {
                "Bucket": self.bucket,
                "Prefix": prefix,
                "MaxKeys": max_keys or self.config.max_keys,
            }
            if delimiter:
                args["Delimiter"] = delimiter
            if continuation_token:
                args["ContinuationToken"] = continuation_token

            response = await anyio.to_thread.run_sync(
                partial(self.client.list_objects_v2, **args)
            )

            objects = [
                StorageObject(
                    key=obj["Key"],
                    size=obj.get("Size", 0),
                    etag=obj.get("ETag", "").strip('"') or None,
                    last_modified=obj.get("LastModified"),
                )
                for obj in response.get("Contents", []) or []
            ]
            prefixes = [p["Prefix"] for p in response.get("CommonPrefixes", []) or []]

            return ListObjectsResult(
                prefix=prefix,
                objects=objects,
                common_prefixes=prefixes,
                is_truncated=bool(response.get("IsTruncated", False)),
                next_continuation_token=response.get("NextContinuationToken"),
            )

        except Exception as e:
            self._handle_exception(e, f"list objects {prefix}")

    async def batch_delete(self, keys: list[str]) -> dict[str, bool]:
        """Batch delete multiple files (at most 1000 keys per call)."""
        if not keys:
            return {}
        try:
            objects = [{"Key": key} for key in keys]
            response = await anyio.to_thread.run_sync(
                partial(
                    self.client.delete_objects,
                    Bucket=self.bucket,
                    Delete={"Objects": objects}
                )
            )

            deleted = {obj["Key"]: True for obj in response.get("Deleted", [])}
            errors = {obj["Key"]: False for obj in response.get("Errors", [])}
            logger.info("Batch deleted from S3", deleted=len(deleted), errors=len(errors))

            return {**deleted, **errors}

        except Exception as e:
            self._handle_exception(e, "batch delete")

    async def get_object_tagging(self, key: str) -> list[ObjectTag]:
        """Read an object's tag set."""
        try:
            response = await anyio.to_thread.run_sync(
                partial(
                    self.client.get_object_tagging,
                    Bucket=self.bucket,
                    Key=key
                )
            )
            return [ObjectTag(key=t["Key"], value=t["Value"]) for t in response.get("TagSet", [])]
        except Exception as e:
            self._handle_exception(e, f"get tagging {key}")

    async def put_object_tagging(self, key: str, tags: list[ObjectTag]) -> None:
        """Replace an object's tag set."""
        try:
            await anyio.to_thread.run_sync(
                partial(
                    self.client.put_object_tagging,
                    Bucket=self.bucket,
                    Key=key,
                    Tagging={"TagSet": [{"Key": t.key, "Value": t.value} for t in tags]}
                )
            )
        except Exception as e:
            self._handle_exception(e, f"put tagging {key}")

    async def generate_presigned_url(
        self,
        key: str,
        expires_in: int = 3600,
    ) -> PresignedRequest:
        """Generate presigned GET URL for S3."""
        try:
            url = await anyio.to_thread.run_sync(
                partial(
                    self.client.generate_presigned_url,
                    ClientMethod="get_object",
                    Params={"Bucket": self.bucket, "Key": key},
                    ExpiresIn=expires_in
                )
            )
            return PresignedRequest(url=url, expires_in=expires_in)
        except Exception as e:
            self._handle_exception(e, f"generate presigned URL {key}")

    async def health_check(self) -> bool:
        """Check S3 connectivity."""
        try:
            await anyio.to_thread.run_sync(
                partial(
                    self.client.head_bucket,
                    Bucket=self.bucket
                )
            )
            logger.info("S3 health check passed")
            return True
        except Exception as e:
            logger.error("S3 health check failed", error=str(e))
            return False

    async def multipart_upload_start(
        self,
        key: str,
        content_type: Optional[str] = None
    ) -> str:
        """Start multipart upload."""
        try:
            args = {"Bucket": self.bucket, "Key": key}
            if content_type:
                args["ContentType"] = content_type

            response = await anyio.to_thread.run_sync(
                partial(self.client.create_multipart_upload, **args)
            )
            return response["UploadId"]
        except Exception as e:
            self._handle_exception(e, f"start multipart upload {key}")

    async def multipart_upload_part(
        self,
        key: str,
        upload_id: str,
        part_number: int,
        data: bytes
    ) -> UploadedPart:
        """Upload part in multipart upload."""
        try:
            response = await anyio.to_thread.run_sync(
                partial(
                    self.client.upload_part,
                    Bucket=self.bucket,
                    Key=key,
                    UploadId=upload_id,
                    PartNumber=part_number,
                    Body=data
                )
            )
            return UploadedPart(part_number=part_number, etag=response["ETag"])
        except Exception as e:
            self._handle_exception(e, f"upload part {part_number} of {key}")

    async def multipart_upload_complete(
        self,
        upload_id: str,
        key: str,
        parts: list[UploadedPart]
    ) -> UploadResult:
        """Complete multipart upload."""
        try:
            response = await anyio.to_thread.run_sync(
                partial(
                    self.client.complete_multipart_upload,
                    Bucket=self.bucket,
                    Key=key,
                    UploadId=upload_id,
                    MultipartUpload={
                        "Parts": [{"PartNumber": p.part_number, "ETag": p.etag} for p in parts]
                    }
                )
            )
            logger.info("Completed multipart upload", key=key, parts=len(parts))

            return UploadResult(
                key=key,
                etag=response.get("ETag", "").strip('"'),
                size=0,  # S3 does not echo the size; callers track it
            )
        except Exception as e:
            self._handle_exception(e, f"complete multipart upload {key}")

    async def multipart_upload_abort(self, upload_id: str, key: str) -> None:
        """Abort multipart upload."""
        try:
            await anyio.to_thread.run_sync(
                partial(
                    self.client.abort_multipart_upload,
                    Bucket=self.bucket,
                    Key=key,
                    UploadId=upload_id
                )
            )
            logger.info("Aborted multipart upload", key=key, upload_id=upload_id)
        except Exception as e:
            self._handle_exception(e, f"abort multipart upload {key}")

    def _handle_exception(self, e: Exception, operation: str) -> None:
        """Map S3 exceptions to storage exceptions."""
        error_code = getattr(e, "response", {}).get("Error", {}).get("Code", "")

        if error_code in ["NoSuchKey", "NoSuchBucket", "NoSuchUpload", "404"]:
            raise NotFoundError(f"Object not found: {operation}") from e
        elif error_code in ["AccessDenied", "403"]:
            raise PermissionDeniedError(f"Access denied: {operation}") from e
        elif error_code in ["RequestTimeout", "SlowDown", "ServiceUnavailable", "InternalError"]:
            raise TransientError(f"Transient error: {operation}: {e}") from e
        else:
            raise StorageError(f"S3 error during {operation}: {e}") from e


async def build_s3_provider(config: StorageConfig) -> S3Provider:
    """Build S3 storage provider.

    Used for AWS S3, Backblaze B2 and any other S3-compatible endpoint.

    Args:
        config: Storage configuration

    Returns:
        Configured S3 provider instance
    """
    if not config.bucket:
        raise ConfigurationError("S3 bucket name is required")

    try:
        import boto3
        from botocore.config import Config as BotoConfig
    except ImportError:
        raise ConfigurationError("boto3 is required for S3 storage")

    # A single attempt by default: retrying is the caller's decision
    boto_config = BotoConfig(
        region_name=config.region,
        signature_version="s3v4",
        retries={
            "max_attempts": config.max_retry_attempts,
            "mode": "standard"
        },
        connect_timeout=config.timeout,
        read_timeout=config.timeout
    )

    client_args = {
        "service_name": "s3",
        "config": boto_config
    }

    if config.aws_access_key_id and config.aws_secret_access_key:
        client_args.update({
            "aws_access_key_id": config.aws_access_key_id,
            "aws_secret_access_key": config.aws_secret_access_key
        })

    if config.endpoint:
        client_args["endpoint_url"] = config.endpoint
        client_args["use_ssl"] = config.enable_ssl

    client = boto3.client(**client_args)

    provider = S3Provider(client, config)

    if not await provider.health_check():
        raise ConfigurationError("Failed to connect to S3")

    return provider
