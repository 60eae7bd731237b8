"""
Bounded producer/consumer bridge for streamed AI output.

A producer task drains the source iterator into an :class:`asyncio.Queue`
while the consumer iterates the channel. The queue bound keeps the producer
at most ``maxsize`` fragments ahead. Closing the channel cancels the producer
and stops further delivery; whatever the consumer already rendered stays.
A channel is single-use.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from tonecord.util.logger import get_logger

logger = get_logger("fragment_channel")

_END = object()


class FragmentChannel:
    """Async iterator over the fragments of one streamed completion.

    Attributes:
        error (Exception | None): Failure that ended the source early, if any.
    """

    def __init__(self, source: AsyncIterator[str], maxsize: int = 32, name: str = "stream"):
        self._source = source
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._name = name
        self._task: asyncio.Task | None = None
        self._closed = False
        self.error: Exception | None = None

    def __aiter__(self) -> FragmentChannel:
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        if self._task is None:
            self._task = asyncio.create_task(self._produce(), name=f"fragment-producer:{self._name}")

        item = await self._queue.get()
        if item is _END:
            self._closed = True
            raise StopAsyncIteration
        return item

    async def _produce(self) -> None:
        try:
            async for fragment in self._source:
                await self._queue.put(fragment)
        except Exception as exc:
            self.error = exc
            logger.error("[STREAM] %s ended early: %s", self._name, exc)
        finally:
            aclose = getattr(self._source, "aclose", None)
            if aclose is not None:
                try:
                    await aclose()
                except Exception as exc:
                    logger.debug("[STREAM] Failed to close source of %s: %s", self._name, exc)
        await self._queue.put(_END)

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        """Stop delivery and cancel the producer if it is still running."""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)

    async def __aenter__(self) -> FragmentChannel:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
