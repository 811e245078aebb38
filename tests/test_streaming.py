import asyncio
import math

import pytest

from blob_cache.app.services.streaming import FileChunkReader, copy_stream
from conftest import generate_random_content, read_all


class RecordingSink:
    """Async sink that remembers the size of every write."""

    def __init__(self):
        self.writes = []
        self.data = bytearray()

    async def write(self, chunk):
        self.writes.append(len(chunk))
        self.data.extend(chunk)


class GatedSink(RecordingSink):
    """Sink whose writes block until released."""

    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def write(self, chunk):
        await self.release.wait()
        await super().write(chunk)


async def from_list(chunks):
    for chunk in chunks:
        yield chunk


@pytest.mark.asyncio
async def test_copy_stream_returns_total_and_preserves_order():
    sink = RecordingSink()
    total = await copy_stream(from_list([b"abc", b"", b"defg"]), sink)

    assert total == 7
    assert bytes(sink.data) == b"abcdefg"
    # Empty chunks are never written
    assert sink.writes == [3, 4]


@pytest.mark.asyncio
async def test_copy_stream_splits_large_chunks():
    sink = RecordingSink()
    total = await copy_stream(from_list([b"a" * 10, b"b" * 25]), sink, chunk_size=8)

    assert total == 35
    assert sink.writes == [8, 2, 8, 8, 8, 1]
    assert max(sink.writes) <= 8


@pytest.mark.asyncio
async def test_copy_stream_waits_for_sink():
    """The producer is not pulled again while a write is pending."""
    pulled = 0

    async def producer():
        nonlocal pulled
        for _ in range(5):
            pulled += 1
            yield b"x" * 16

    sink = GatedSink()
    task = asyncio.create_task(copy_stream(producer(), sink))
    for _ in range(10):
        await asyncio.sleep(0)
    assert pulled == 1

    sink.release.set()
    assert await task == 80
    assert pulled == 5


@pytest.mark.asyncio
async def test_reader_streams_large_file_in_bounded_chunks(tmp_path):
    content = generate_random_content(10 * 1024 * 1024)
    path = tmp_path / "large.bin"
    path.write_bytes(content)
    chunk_size = 64 * 1024

    reader = await FileChunkReader.open(path, chunk_size)
    assert reader.size == len(content)

    chunks = [chunk async for chunk in reader]
    assert len(chunks) == math.ceil(len(content) / chunk_size)
    assert all(len(chunk) <= chunk_size for chunk in chunks)
    assert b"".join(chunks) == content
    assert reader.closed


@pytest.mark.asyncio
async def test_reader_empty_file(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")

    reader = await FileChunkReader.open(path)
    assert reader.size == 0
    assert await read_all(reader) == b""


@pytest.mark.asyncio
async def test_reader_is_single_use(tmp_path):
    path = tmp_path / "once.bin"
    path.write_bytes(b"hello")

    reader = await FileChunkReader.open(path)
    assert await read_all(reader) == b"hello"
    with pytest.raises(RuntimeError):
        await read_all(reader)


@pytest.mark.asyncio
async def test_reader_aclose_before_iteration(tmp_path):
    path = tmp_path / "unused.bin"
    path.write_bytes(b"hello")

    reader = await FileChunkReader.open(path)
    await reader.aclose()
    assert reader.closed
    # Closing twice is harmless
    await reader.aclose()


@pytest.mark.asyncio
async def test_reader_open_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        await FileChunkReader.open(tmp_path / "missing.bin")
