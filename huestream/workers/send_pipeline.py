"""Single-writer send pipeline for one entertainment stream.

Producers hand updates to one background task which encodes them and writes
them to the secure transport in submission order. Write failures do not stop
the stream; they go to a small error buffer that never blocks the writer.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

from loguru import logger

from ..errors import StreamClosedError, StreamError, WriteError
from ..schemas.channel_update import ChannelUpdate
from ..services.codec import encode_message
from ..services.transport import SecureTransport

DEFAULT_ERROR_BUFFER = 10

# End-of-stream marker put on the update queue by close()
_END = object()


class SendPipeline:
    def __init__(
        self,
        transport: SecureTransport,
        area_id: str,
        *,
        error_buffer: int = DEFAULT_ERROR_BUFFER,
    ):
        """
        Args:
            transport: Connection the worker writes to; owned by the stream
            area_id: Entertainment configuration id written in every header
            error_buffer: Capacity of the error buffer; further errors are dropped
        """
        self._transport = transport
        self._area_id = area_id

        # maxsize=1: a slow writer backpressures producers instead of buffering frames
        self._updates: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._errors: asyncio.Queue[StreamError] = asyncio.Queue(maxsize=error_buffer)
        self._send_lock = asyncio.Lock()
        self._done = asyncio.Event()
        self._closing = False
        self._task: asyncio.Task | None = None

        self.sent = 0
        self.dropped_errors = 0

    @property
    def closed(self) -> bool:
        return self._closing

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name=f"huestream-send:{self._area_id}")

    async def submit(self, update: ChannelUpdate | None) -> None:
        """Queue an update; waits while the writer is still busy with the previous one.

        Raises:
            StreamClosedError: If close() has been called
        """
        async with self._send_lock:
            if self._closing:
                raise StreamClosedError(f"stream for area {self._area_id} is closed")
            await self._updates.put(update)

    async def close(self) -> None:
        """Stop accepting updates, let the writer drain the queue and wait for it to exit."""
        async with self._send_lock:
            if self._closing:
                return
            self._closing = True
            if self._task is None:
                self._done.set()
                return
            await self._updates.put(_END)
        await self._task
        logger.debug(
            "Send pipeline drained: area={} sent={} dropped_errors={}",
            self._area_id,
            self.sent,
            self.dropped_errors,
        )

    async def _run(self) -> None:
        try:
            while True:
                update = await self._updates.get()
                if update is _END:
                    break
                if update is None or update.is_empty():
                    continue
                await self._write(update)
        finally:
            self._done.set()

    async def _write(self, update: ChannelUpdate) -> None:
        try:
            await self._transport.write(encode_message(self._area_id, update))
        except StreamError as exc:
            self._report(exc)
        except Exception as exc:
            error = WriteError(f"write for area {self._area_id}: {exc}")
            error.__cause__ = exc
            self._report(error)
        else:
            self.sent += 1

    def _report(self, error: StreamError) -> None:
        try:
            self._errors.put_nowait(error)
        except asyncio.QueueFull:
            self.dropped_errors += 1
            logger.debug("Error buffer full, dropping: area={} error={}", self._area_id, error)

    async def next_error(self) -> StreamError | None:
        """Wait for the next reported error.

        Returns None once the pipeline has exited and every buffered error was read.
        """
        while True:
            try:
                return self._errors.get_nowait()
            except asyncio.QueueEmpty:
                if self._done.is_set():
                    return None

            getter = asyncio.ensure_future(self._errors.get())
            finished = asyncio.ensure_future(self._done.wait())
            done, pending = await asyncio.wait({getter, finished}, return_when=asyncio.FIRST_COMPLETED)
            for task in pending:
                task.cancel()
            if getter in done:
                return getter.result()

    async def errors(self) -> AsyncIterator[StreamError]:
        while (error := await self.next_error()) is not None:
            yield error


__all__ = ["DEFAULT_ERROR_BUFFER", "SendPipeline"]
