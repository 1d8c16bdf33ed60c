from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Iterable
from typing import Any

from loguru import logger

from claws_assistant.errors import StreamCancelled, StreamTransportError
from claws_assistant.providers.stream_decoder import StreamDecoder
from claws_assistant.stream_events import ErrorEvent, StreamEvent

DEFAULT_QUEUE_CAPACITY = 10

_END = object()


class EventStream:
    """Async iterator over the decoded events of one streaming turn.

    A producer task pulls frames off the wire (blocking reads run in a worker
    thread), decodes them and publishes events into a bounded queue. When the
    queue is full the producer waits. The terminal event is always either a
    DoneEvent or a single ErrorEvent.
    """

    def __init__(
        self,
        frames: Iterable[dict[str, Any]],
        *,
        cancel: asyncio.Event | None = None,
        on_close: Callable[[], None] | None = None,
        capacity: int = DEFAULT_QUEUE_CAPACITY,
        error: Exception | None = None,
    ) -> None:
        self._frames = frames
        self._error = error
        self._cancel = cancel
        self._on_close = on_close
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=max(1, capacity))
        self._task: asyncio.Task | None = None
        self._finished = False
        self._released = False

    def start(self) -> None:
        if self._task is None and not self._finished:
            self._task = asyncio.create_task(self._run())

    def __aiter__(self) -> EventStream:
        self.start()
        return self

    async def __anext__(self) -> StreamEvent:
        if self._finished:
            raise StopAsyncIteration
        self.start()
        item = await self._queue.get()
        if item is _END:
            self._finished = True
            raise StopAsyncIteration
        return item

    @classmethod
    def failed(cls, error: Exception) -> EventStream:
        """A stream whose only event is the given error."""
        return cls((), error=error)

    async def __aenter__(self) -> EventStream:
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.aclose()
        return False

    async def aclose(self) -> None:
        self._finished = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._release()

    async def _run(self) -> None:
        try:
            await self._pump()
        except Exception as ex:
            logger.warning(f"Stream failed: {type(ex).__name__}: {ex}")
            error = StreamTransportError(f"{type(ex).__name__}: {ex}")
            error.__cause__ = ex
            await self._queue.put(ErrorEvent(error))
        finally:
            self._release()
        await self._queue.put(_END)

    async def _pump(self) -> None:
        if self._error is not None:
            await self._queue.put(ErrorEvent(self._error))
            return

        decoder = StreamDecoder()
        frames = iter(self._frames)
        while True:
            frame = await asyncio.to_thread(next, frames, _END)
            if frame is _END:
                await self._queue.put(ErrorEvent(StreamTransportError("stream ended before message stop")))
                return

            if self._cancel is not None and self._cancel.is_set():
                logger.debug("Stream cancelled by caller")
                await self._queue.put(ErrorEvent(StreamCancelled()))
                return

            for event in decoder.feed(frame):
                await self._queue.put(event)

            if decoder.done:
                return

    def _release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._on_close is None:
            return
        try:
            self._on_close()
        except Exception as ex:
            logger.debug(f"Stream close error: {ex}")
