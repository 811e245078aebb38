import os
import random

import pytest
import pytest_asyncio

from blob_cache.app.services.storage_manager import StorageManager
from blob_cache.config import ServerConfig


def generate_random_hash(length=40):
    """Generate a random hex hash token."""
    return ''.join(random.choice('0123456789abcdef') for _ in range(length))


def generate_random_content(size_bytes):
    """Generate random binary content of specified size."""
    return os.urandom(size_bytes)


async def chunks_of(content, chunk_size=4096):
    """Yield content in fixed-size pieces, like a request body stream."""
    for offset in range(0, len(content), chunk_size):
        yield content[offset:offset + chunk_size]


async def read_all(reader):
    return b"".join([chunk async for chunk in reader])


def all_files(root):
    return sorted(p for p in root.rglob("*") if p.is_file())


@pytest.fixture
def server_config(tmp_path):
    root = tmp_path / "cache"
    asset_root = tmp_path / "assets"
    root.mkdir()
    asset_root.mkdir()
    return ServerConfig(root=root, asset_root=asset_root, chunk_size=4096)


@pytest_asyncio.fixture
async def storage_manager(server_config):
    manager = StorageManager(server_config)
    await manager.initialize()
    return manager
