"""Write policies for the two storage roots.

Binaries go through store_atomic: they are staged next to their destination
and renamed into place, so readers see the old object or the new one and
nothing in between. Assets go through store_direct, which truncates and
writes the destination in place. A reader can see a partially written asset
and a failed upload leaves a truncated one behind.
"""
import uuid
from pathlib import Path
from typing import AsyncIterator

import aiofiles
import aiofiles.os

from blob_cache import config
from blob_cache.app.errors import StorageIOError
from blob_cache.app.services.streaming import copy_stream
from blob_cache.logger_config import get_logger

logger = get_logger()


async def ensure_shard_dir(path: Path):
    """Create the shard directory holding `path`, one level only."""
    try:
        await aiofiles.os.mkdir(path.parent)
        logger.debug(f"Created shard directory {path.parent}")
    except FileExistsError:
        # Another request created it first
        pass
    except OSError as e:
        raise StorageIOError(f"Cannot create directory {path.parent}: {e}") from e


def staging_path_for(path: Path) -> Path:
    return path.parent / f".{path.name}.{uuid.uuid4().hex}.tmp"


async def _discard(staging_path: Path):
    try:
        await aiofiles.os.unlink(staging_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Could not remove staging file {staging_path}: {e}")


async def store_atomic(path: Path, chunks: AsyncIterator[bytes], chunk_size: int = config.CHUNK_SIZE) -> int:
    """Stream `chunks` into `path`, making the object visible only once complete."""
    await ensure_shard_dir(path)

    staging_path = staging_path_for(path)
    promoted = False
    try:
        async with aiofiles.open(staging_path, 'xb') as f:
            written = await copy_stream(chunks, f, chunk_size)
        await aiofiles.os.replace(staging_path, path)
        promoted = True
        return written
    except OSError as e:
        raise StorageIOError(f"Error writing {path}: {e}") from e
    finally:
        if not promoted:
            await _discard(staging_path)


async def store_direct(path: Path, chunks: AsyncIterator[bytes], chunk_size: int = config.CHUNK_SIZE) -> int:
    """Stream `chunks` straight into `path`. Not atomic, see module docstring."""
    try:
        async with aiofiles.open(path, 'wb') as f:
            return await copy_stream(chunks, f, chunk_size)
    except OSError as e:
        raise StorageIOError(f"Error writing {path}: {e}") from e
