"""Pytest bootstrap configuration.

Point settings at the in-memory backends before any module reads them.
"""
import os

os.environ.setdefault("STORAGE__TYPE", "memory")
os.environ.setdefault("STORAGE__BUCKET", "test-bucket")
os.environ.setdefault("DRIVE__FOLDER_INDEX_BACKEND", "memory")

import pytest

from bucketdrive.infrastructure.adapters.storage_port import StorageProviderPortAdapter
from bucketdrive.infrastructure.external.storage.config import StorageConfig
from bucketdrive.infrastructure.external.storage.providers.memory import InMemoryProvider


@pytest.fixture
def memory_provider() -> InMemoryProvider:
    return InMemoryProvider(StorageConfig(type="memory", bucket="test-bucket"))


@pytest.fixture
def storage(memory_provider) -> StorageProviderPortAdapter:
    return StorageProviderPortAdapter(memory_provider)
