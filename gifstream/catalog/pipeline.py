"""
Debounced live-search pipeline.

The pipeline holds the current search string. Each change restarts a
short suppression window; only when the window elapses without another
change is a page stream started for the settled query. Starting a new
change cancels the stream of the previous query, so a consumer only
ever sees pages of the most recently settled query.

Cancellation is a comparison, not an interrupt: every stream is tagged
with the generation that created it, and results are checked against
the current generation before they are handed out.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Optional, Tuple

from .repository import PageStream

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


class PipelineState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    ACTIVE = "active"


class QueryPipeline:
    """Turns a stream of query edits into one live page stream.

    Must be used from inside a running event loop.
    """

    def __init__(self, repository, debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS) -> None:
        self._repository = repository
        self.debounce_seconds = debounce_seconds
        self._query = ""
        self._generation = 0
        self._state = PipelineState.IDLE
        self._timer: Optional[asyncio.Task] = None
        self._stream: Optional[PageStream] = None
        self._published: "asyncio.Queue[Tuple[int, PageStream]]" = asyncio.Queue()

    @property
    def query(self) -> str:
        return self._query

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_stream(self) -> Optional[PageStream]:
        return self._stream

    @property
    def state(self) -> PipelineState:
        if self._state is PipelineState.ACTIVE and self._stream is not None and self._stream.exhausted:
            return PipelineState.IDLE
        return self._state

    def start(self) -> None:
        """Settle the initial (empty) query, which shows the trending feed."""
        self._restart()

    def update(self, query: str) -> None:
        """Record a new query value. Repeating the current value is a no-op."""
        if query == self._query and self._state is not PipelineState.IDLE:
            return
        self._query = query
        self._restart()

    def _restart(self) -> None:
        self._generation += 1
        if self._stream is not None:
            self._stream.cancel()
            self._stream = None
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._state = PipelineState.DEBOUNCING
        self._timer = asyncio.get_running_loop().create_task(self._settle(self._generation))

    async def _settle(self, generation: int) -> None:
        await asyncio.sleep(self.debounce_seconds)
        if generation != self._generation:
            return
        stream = self._repository.page_stream(self._query)
        self._stream = stream
        self._state = PipelineState.ACTIVE
        logger.debug("Query %r settled (generation %d)", self._query, generation)
        self._published.put_nowait((generation, stream))

    async def streams(self) -> AsyncIterator[PageStream]:
        """Yield each page stream as its query settles.

        Streams superseded before the consumer picked them up are
        skipped.
        """
        while True:
            generation, stream = await self._published.get()
            if generation != self._generation or stream.cancelled:
                continue
            yield stream

    async def close(self) -> None:
        self._generation += 1
        if self._stream is not None:
            self._stream.cancel()
            self._stream = None
        timer, self._timer = self._timer, None
        if timer is not None and not timer.done():
            timer.cancel()
            try:
                await timer
            except asyncio.CancelledError:
                pass
        self._state = PipelineState.IDLE
