from pathlib import Path
from typing import AsyncIterator, Union

import aiofiles
import aiofiles.os

from blob_cache import config


async def copy_stream(chunks: AsyncIterator[bytes], sink, chunk_size: int = config.CHUNK_SIZE) -> int:
    """Copy an inbound chunk stream into an async sink, returning the byte count.

    Each write is awaited before the next chunk is pulled, so the producer is
    never read faster than the sink accepts data. Inbound chunks larger than
    chunk_size are written in chunk_size slices.
    """
    total = 0
    async for chunk in chunks:
        if not chunk:
            continue
        view = memoryview(chunk)
        for offset in range(0, len(view), chunk_size):
            await sink.write(view[offset:offset + chunk_size])
        total += len(view)
    return total


class FileChunkReader:
    """Streams an already-open file in chunks of at most chunk_size bytes.

    `size` is taken from the open descriptor, so it describes the file this
    reader will actually stream. A reader serves a single response: it closes
    its handle at EOF and cannot be iterated twice.
    """

    def __init__(self, handle, size: int, chunk_size: int = config.CHUNK_SIZE):
        self._handle = handle
        self.size = size
        self.chunk_size = chunk_size
        self.closed = False
        self._consumed = False

    @classmethod
    async def open(cls, path: Union[str, Path], chunk_size: int = config.CHUNK_SIZE) -> 'FileChunkReader':
        handle = await aiofiles.open(path, 'rb')
        try:
            stat = await aiofiles.os.stat(handle.fileno())
        except OSError:
            await handle.close()
            raise
        return cls(handle, stat.st_size, chunk_size)

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise RuntimeError("FileChunkReader can only be iterated once")
        self._consumed = True
        try:
            while chunk := await self._handle.read(self.chunk_size):
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self):
        if not self.closed:
            self.closed = True
            await self._handle.close()
