"""
Configuration - project settings management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class RedisSettings(BaseModel):
    url: Optional[str] = None
    max_connections: int = 10
    namespace: str = "bucketdrive"


class StorageSettings(BaseModel):
    type: str = "memory"  # s3, backblaze, s3_compatible, memory
    bucket: Optional[str] = None
    region: Optional[str] = None
    endpoint: Optional[str] = None
    bucket_url: Optional[str] = None
    # S3 specific
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    # Advanced settings
    max_retry_attempts: int = 1  # 1 == single attempt, no automatic retry
    timeout: int = 30
    enable_ssl: bool = True
    max_keys: int = 1000


class DriveSettings(BaseModel):
    signed_url_ttl: int = 24 * 3600
    min_part_size: int = 5 * 1024 * 1024  # S3 minimum for every part but the last
    max_parts: int = 10_000
    folder_index_backend: str = "memory"  # memory, file, redis
    folder_index_path: str = "/tmp/bucketdrive"
    folder_index_prune_mode: str = "prefix"  # prefix, substring
    remote_collision_check: bool = False

    @field_validator("folder_index_prune_mode")
    @classmethod
    def _check_prune_mode(cls, v: str) -> str:
        if v not in ("prefix", "substring"):
            raise ValueError("folder_index_prune_mode must be 'prefix' or 'substring'")
        return v


class Settings(BaseSettings):
    """Project settings"""

    PROJECT_NAME: str = Field(default="bucketdrive")
    VERSION: str = Field(default="0.1.0")
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Optional[str] = Field(default=None)

    storage: StorageSettings = Field(default_factory=StorageSettings)
    drive: DriveSettings = Field(default_factory=DriveSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


settings = Settings()
