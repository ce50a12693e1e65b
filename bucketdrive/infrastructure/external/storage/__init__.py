"""Storage service entry point and lifecycle management."""
from typing import Optional
from functools import lru_cache

from bucketdrive.core.config import StorageSettings, settings
from bucketdrive.core.logging_config import get_logger
from .base import StorageProvider
from .config import StorageConfig, StorageType
from .factory import create_provider, register_provider
from .models import (
    ListObjectsResult,
    ObjectTag,
    PresignedRequest,
    StorageObject,
    UploadedPart,
    UploadResult,
)
from .exceptions import (
    StorageError,
    NotFoundError,
    PermissionDeniedError,
    TransientError,
    ConfigurationError,
)

logger = get_logger(__name__)

# Global storage client instance
_storage_client: Optional[StorageProvider] = None


def storage_config_from(s: StorageSettings) -> StorageConfig:
    """Assemble a StorageConfig from a ``storage`` settings section."""
    return StorageConfig(
        type=s.type or StorageType.MEMORY,
        bucket=s.bucket,
        region=s.region,
        endpoint=s.endpoint,
        bucket_url=s.bucket_url,
        aws_access_key_id=s.aws_access_key_id,
        aws_secret_access_key=s.aws_secret_access_key,
        max_retry_attempts=s.max_retry_attempts,
        timeout=s.timeout,
        enable_ssl=s.enable_ssl,
        max_keys=s.max_keys,
    )


@lru_cache
def get_storage_config() -> StorageConfig:
    """Get storage configuration from settings.

    Assembles StorageConfig from core.config.settings to maintain
    single source of truth for configuration.
    """
    return storage_config_from(settings.storage)


async def init_storage_client(config: Optional[StorageConfig] = None) -> StorageProvider:
    """Initialize storage client.

    Creates the storage provider based on configuration. Calling it again
    returns the client that is already running.
    """
    global _storage_client

    if _storage_client is not None:
        logger.warning("Storage client already initialized")
        return _storage_client

    config = config or get_storage_config()
    try:
        _storage_client = await create_provider(config)
    except Exception as e:
        logger.error("Failed to initialize storage client", error=str(e))
        raise

    logger.info(
        "Storage client initialized",
        provider=StorageType(config.type).value,
        bucket=config.bucket
    )
    return _storage_client


def get_storage_client() -> Optional[StorageProvider]:
    """Get storage client instance, or None if not initialized."""
    return _storage_client


async def shutdown_storage_client() -> None:
    """Forget the storage client.

    boto3 clients hold no resources that need closing.
    """
    global _storage_client

    if _storage_client is None:
        return

    _storage_client = None
    logger.info("Storage client shutdown")


def get_storage() -> StorageProvider:
    """Return the running storage client.

    Raises:
        RuntimeError: If storage not initialized
    """
    client = get_storage_client()
    if client is None:
        raise RuntimeError(
            "Storage client not initialized. "
            "Call init_storage_client() during startup."
        )
    return client


__all__ = [
    # Lifecycle
    "init_storage_client",
    "get_storage_client",
    "shutdown_storage_client",
    "get_storage",

    # Configuration
    "get_storage_config",
    "storage_config_from",
    "create_provider",
    "StorageConfig",
    "StorageType",
    "register_provider",

    # Base types
    "StorageProvider",

    # Models
    "ListObjectsResult",
    "ObjectTag",
    "PresignedRequest",
    "StorageObject",
    "UploadedPart",
    "UploadResult",

    # Exceptions
    "StorageError",
    "NotFoundError",
    "PermissionDeniedError",
    "TransientError",
    "ConfigurationError",
]
