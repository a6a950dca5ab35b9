# core/byte_pipe.py
import asyncio
import contextlib
import logging
from typing import AsyncIterator, Optional, Protocol, Union

logger = logging.getLogger(__name__)


class ByteSource(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


class BytePipeError(Exception):
    """The source could not be read, or produced a different byte count than declared."""


class _Eof:
    pass


_EOF = _Eof()


class BytePipe:
    """
    Bounded producer/consumer between an incoming byte source and an outgoing
    request body.

    A producer task reads the source in chunks of at most `chunk_size` bytes
    into a queue of `depth` slots; `chunks()` drains it. When the consumer is
    slow the queue fills and the producer blocks, so at most
    depth * chunk_size bytes are held in memory regardless of file size.

    Usage:
      async with BytePipe(upload, size, chunk_size=1 << 20, depth=4) as pipe:
          await client.put(url, content=pipe.chunks(), ...)
    """

    def __init__(
        self,
        source: ByteSource,
        expected_size: Optional[int],
        *,
        chunk_size: int,
        depth: int,
    ) -> None:
        if chunk_size < 1 or depth < 1:
            raise ValueError("chunk_size and depth must be >= 1")
        self._source = source
        self._expected = expected_size
        self._chunk_size = chunk_size
        self._queue: "asyncio.Queue[Union[bytes, _Eof, BytePipeError]]" = asyncio.Queue(
            maxsize=depth
        )
        self._producer: Optional[asyncio.Task] = None
        self.bytes_read = 0
        self.bytes_sent = 0

    async def __aenter__(self) -> "BytePipe":
        self._producer = asyncio.create_task(self._produce())
        return self

    async def __aexit__(self, *exc_info) -> None:
        producer = self._producer
        if producer is not None and not producer.done():
            # consumer gave up early (e.g. transport error mid-body)
            producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer
            logger.debug("pipe.producer.cancelled read=%d sent=%d", self.bytes_read, self.bytes_sent)

    async def _produce(self) -> None:
        # Always ends with _EOF or a BytePipeError on the queue (unless cancelled),
        # otherwise chunks() would wait forever.
        terminal: Union[_Eof, BytePipeError] = _EOF
        try:
            while True:
                chunk = await self._source.read(self._chunk_size)
                if not chunk:
                    break
                self.bytes_read += len(chunk)
                await self._queue.put(chunk)
        except Exception as e:
            logger.error("pipe.source.read_error read=%d err=%s", self.bytes_read, type(e).__name__)
            terminal = BytePipeError(f"source read failed: {type(e).__name__}: {e}")
            terminal.__cause__ = e
        await self._queue.put(terminal)

    async def chunks(self) -> AsyncIterator[bytes]:
        if self._producer is None:
            raise RuntimeError("BytePipe must be entered before iterating")
        while True:
            item = await self._queue.get()
            if isinstance(item, _Eof):
                break
            if isinstance(item, BytePipeError):
                raise item
            if self._expected is not None and self.bytes_sent + len(item) > self._expected:
                raise BytePipeError(
                    f"source exceeded declared size of {self._expected} bytes"
                )
            self.bytes_sent += len(item)
            yield item

        if self._expected is not None and self.bytes_sent != self._expected:
            raise BytePipeError(
                f"source ended after {self.bytes_sent} of {self._expected} declared bytes"
            )
