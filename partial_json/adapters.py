"""Async adapters around PartialJSONParser.

``parse_stream`` pulls chunks from a source and yields snapshots.
``SnapshotTransform`` is a two-sided stage: chunks are sent in, snapshots
are read out, and a bounded queue between the two applies backpressure.
"""
import asyncio
import codecs
import logging
from typing import Any, AsyncIterable, AsyncIterator, Union

from partial_json.scanner import DEFAULT_MAX_DEPTH
from partial_json.streaming_parser import PartialJSONParser

logger = logging.getLogger(__name__)

Chunk = Union[str, bytes]

READ_SIZE = 64 * 1024

_EOF = object()


async def _iter_reader(reader: Any, read_size: int) -> AsyncIterator[Chunk]:
    """Turn a pull-style reader (``await reader.read(n)``) into an async iterator."""
    while True:
        chunk = await reader.read(read_size)
        if not chunk:
            break
        yield chunk


def _open_source(source: Any, read_size: int) -> AsyncIterator[Chunk]:
    # readers such as asyncio.StreamReader are also line-iterable; prefer read()
    if hasattr(source, 'read'):
        return _iter_reader(source, read_size)
    if hasattr(source, '__aiter__'):
        return source.__aiter__()
    raise TypeError(f"unsupported chunk source: {type(source).__name__}")


async def _release(chunks: AsyncIterator[Chunk]) -> None:
    aclose = getattr(chunks, 'aclose', None)
    if aclose is not None:
        await aclose()
        logger.debug("chunk source released")


class _ChunkDecoder:
    """Pass text through; decode bytes incrementally so split characters survive."""

    def __init__(self, encoding: str = 'utf-8', errors: str = 'strict'):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors)

    def decode(self, chunk: Chunk) -> str:
        if isinstance(chunk, str):
            return chunk
        return self._decoder.decode(chunk)

    def flush(self) -> str:
        return self._decoder.decode(b'', True)


async def parse_stream(source: Union[AsyncIterable[Chunk], Any], *,
                       encoding: str = 'utf-8',
                       errors: str = 'strict',
                       read_size: int = READ_SIZE,
                       max_depth: int = DEFAULT_MAX_DEPTH) -> AsyncIterator[Any]:
    """Yield a snapshot after every chunk that leaves a value in the buffer.

    ``source`` is an async iterable of ``str``/``bytes`` chunks or an object
    with an awaitable ``read(n)``. Bytes are decoded with ``encoding`` and the
    ``errors`` handler of :func:`codecs.getincrementaldecoder`. The iterator
    taken from the source is closed when this generator finishes, fails or is
    cancelled.
    """
    parser = PartialJSONParser(max_depth=max_depth)
    decoder = _ChunkDecoder(encoding, errors)
    chunks = _open_source(source, read_size)
    logger.debug("parse_stream started")
    try:
        async for chunk in chunks:
            parser.push(decoder.decode(chunk))
            if parser.has_value:
                yield parser.value

        tail = decoder.flush()
        if tail:
            parser.push(tail)
            if parser.has_value:
                yield parser.value
    finally:
        await _release(chunks)
        logger.debug("parse_stream finished after %d chars", len(parser.buffer))


class SnapshotTransform:
    """Chunks in through ``send``; snapshots out through ``async for``.

    ``send`` suspends while ``max_pending`` snapshots are waiting to be read.
    ``max_pending=0`` removes the bound. Once closed, the reader gets whatever
    is still queued and then stops.
    """

    def __init__(self, max_pending: int = 16, *,
                 encoding: str = 'utf-8',
                 errors: str = 'strict',
                 max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._parser = PartialJSONParser(max_depth=max_depth)
        self._decoder = _ChunkDecoder(encoding, errors)
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _forward(self) -> None:
        if self._parser.has_value:
            await self._queue.put(self._parser.value)

    def _mark_closed(self) -> None:
        self._closed = True
        # A reader blocked in get() only exists while the queue is empty, so
        # the marker always fits when someone is waiting for it.
        if not self._queue.full():
            self._queue.put_nowait(_EOF)

    async def send(self, chunk: Chunk) -> None:
        if self._closed:
            raise RuntimeError("send() on a closed SnapshotTransform")
        self._parser.push(self._decoder.decode(chunk))
        await self._forward()

    async def close(self) -> None:
        """Flush any buffered bytes and signal end of stream to the reader."""
        if self._closed:
            return
        tail = self._decoder.flush()
        if tail:
            self._parser.push(tail)
            await self._forward()
        self._mark_closed()

    async def pipe_from(self, source: Union[AsyncIterable[Chunk], Any],
                        read_size: int = READ_SIZE) -> None:
        """Send every chunk of ``source``, then close.

        If the source fails or the calling task is cancelled the stage is
        closed without flushing, so this never waits on a reader.
        """
        chunks = _open_source(source, read_size)
        try:
            async for chunk in chunks:
                await self.send(chunk)
        except BaseException:
            logger.debug("pipe_from aborted; closing stage")
            self._mark_closed()
            raise
        finally:
            await _release(chunks)
        await self.close()

    def __aiter__(self) -> 'SnapshotTransform':
        return self

    async def __anext__(self) -> Any:
        if self._drained:
            raise StopAsyncIteration
        if self._closed and self._queue.empty():
            self._drained = True
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _EOF:
            self._drained = True
            raise StopAsyncIteration
        return item
