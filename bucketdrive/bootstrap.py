"""Wire settings, storage and the folder index into a ready DriveSession."""
from __future__ import annotations

from typing import Optional

from bucketdrive.application.services import DriveSession, FolderIndex, SessionOptions
from bucketdrive.core.config import Settings, settings as default_settings
from bucketdrive.core.logging_config import get_logger
from bucketdrive.infrastructure.adapters.storage_port import StorageProviderPortAdapter
from bucketdrive.infrastructure.cache import shutdown_redis_cache
from bucketdrive.infrastructure.external.storage import (
    StorageProvider,
    create_provider,
    get_storage_client,
    init_storage_client,
    shutdown_storage_client,
    storage_config_from,
)
from bucketdrive.infrastructure.folder_index import create_folder_index_store

logger = get_logger(__name__)


def session_options(config: Settings) -> SessionOptions:
    drive = config.drive
    return SessionOptions(
        signed_url_ttl=drive.signed_url_ttl,
        min_part_size=drive.min_part_size,
        max_parts=drive.max_parts,
        remote_collision_check=drive.remote_collision_check,
    )


async def _provider_for(config: Optional[Settings]) -> StorageProvider:
    if config is None:
        return get_storage_client() or await init_storage_client()
    return await create_provider(storage_config_from(config.storage))


async def create_drive_session(
    drive_id: str,
    folder_path: Optional[str] = None,
    *,
    config: Optional[Settings] = None,
) -> DriveSession:
    """Open ``folder_path`` (root when empty) of the configured bucket.

    Without ``config`` the process-wide storage client is initialized on
    first use and shared afterwards. An explicit ``config`` gets its own
    provider built from its ``storage`` section.
    """
    cfg = config or default_settings
    provider = await _provider_for(config)
    store = await create_folder_index_store(cfg)
    index = FolderIndex(store, drive_id, prune_mode=cfg.drive.folder_index_prune_mode)
    await index.load()

    session = DriveSession(
        StorageProviderPortAdapter(provider),
        index,
        options=session_options(cfg),
    )
    await session.open_folder(folder_path)
    logger.info("Drive session opened", drive_id=drive_id, folder=folder_path or "")
    return session


async def close_drive_resources() -> None:
    """Release the shared storage client and Redis connection."""
    await shutdown_storage_client()
    await shutdown_redis_cache()
    logger.info("Drive resources closed")
