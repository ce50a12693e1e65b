"""Storage configuration models."""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class StorageType(str, Enum):
    """Storage provider types."""
    S3 = "s3"
    BACKBLAZE = "backblaze"
    S3_COMPATIBLE = "s3_compatible"
    MEMORY = "memory"


# Provider types whose API supports object tagging
TAGGING_TYPES = frozenset({StorageType.S3, StorageType.MEMORY})


class StorageConfig(BaseModel):
    """Storage configuration model."""
    type: StorageType = StorageType.MEMORY
    bucket: Optional[str] = None
    region: Optional[str] = None
    endpoint: Optional[str] = None
    bucket_url: Optional[str] = None

    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None

    max_retry_attempts: int = 1
    timeout: int = 30
    enable_ssl: bool = True
    max_keys: int = 1000

    model_config = ConfigDict(use_enum_values=True)

    @property
    def supports_tagging(self) -> bool:
        return StorageType(self.type) in TAGGING_TYPES

    def resolved_bucket_url(self) -> Optional[str]:
        """Configured bucket URL, or the provider's virtual-host URL for older drives."""
        if self.bucket_url:
            return self.bucket_url.rstrip("/")
        if not self.bucket:
            return None
        stype = StorageType(self.type)
        if stype is StorageType.S3:
            return f"https://{self.bucket}.s3.{self.region or 'us-east-1'}.amazonaws.com"
        if stype is StorageType.BACKBLAZE:
            return f"https://{self.bucket}.s3.{self.region}.backblazeb2.com"
        if stype is StorageType.MEMORY:
            return f"memory://{self.bucket}"
        if self.endpoint:
            return f"{self.endpoint.rstrip('/')}/{self.bucket}"
        return None
