from pathlib import Path
from typing import AsyncIterator

import aiofiles.os

from blob_cache.app.errors import BlobNotFoundError, StorageConfigError, StorageIOError
from blob_cache.app.services.paths import asset_path, hash_to_path
from blob_cache.app.services.streaming import FileChunkReader
from blob_cache.app.services.writers import store_atomic, store_direct
from blob_cache.config import ServerConfig
from blob_cache.logger_config import get_logger

logger = get_logger()


class StorageManager:
    """Binds the binary and asset roots and serves the store operations.

    Holds no per-object state; every call works only against the filesystem,
    so one instance is shared by all in-flight requests.
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.root = Path(config.root)
        self.asset_root = Path(config.asset_root)
        self.chunk_size = config.chunk_size

    async def initialize(self):
        """Verify the storage roots. They must exist already; nothing is created here."""
        logger.info("Initializing storage manager...")
        for label, root in (("binary", self.root), ("asset", self.asset_root)):
            if not await aiofiles.os.path.isdir(root):
                raise StorageConfigError(f"The {label} root {root} does not exist or is not a directory")
        logger.info(f"Binary root: {self.root}")
        logger.info(f"Asset root: {self.asset_root}")

    def get_blob_path(self, hash_token: str) -> Path:
        return hash_to_path(self.root, hash_token)

    def get_asset_path(self, name: str) -> Path:
        return asset_path(self.asset_root, name)

    async def fetch(self, hash_token: str) -> FileChunkReader:
        """Open a stored binary for streaming.

        Raises:
            InvalidHashError: the hash is too short
            BlobNotFoundError: nothing is stored under the hash
            StorageIOError: the file exists but cannot be opened
        """
        blob_path = self.get_blob_path(hash_token)
        try:
            return await FileChunkReader.open(blob_path, self.chunk_size)
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError) as e:
            raise BlobNotFoundError(f"{blob_path} does not exist") from e
        except OSError as e:
            raise StorageIOError(f"Cannot open {blob_path}: {e}") from e

    async def exists(self, hash_token: str) -> bool:
        blob_path = self.get_blob_path(hash_token)
        return await aiofiles.os.path.exists(blob_path)

    async def store_binary(self, hash_token: str, chunks: AsyncIterator[bytes]) -> int:
        blob_path = self.get_blob_path(hash_token)
        logger.info(f"Writing to {blob_path}")
        written = await store_atomic(blob_path, chunks, self.chunk_size)
        logger.info(f"Stored {written} bytes at {blob_path}")
        return written

    async def store_asset(self, name: str, chunks: AsyncIterator[bytes]) -> int:
        target = self.get_asset_path(name)
        logger.info(f"Writing asset to {target}")
        written = await store_direct(target, chunks, self.chunk_size)
        logger.info(f"Stored {written} bytes at {target}")
        return written
