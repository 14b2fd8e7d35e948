"""Debounced autocomplete input with stale-result suppression."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ..config import settings
from ..schemas import AutocompleteRequest, AutocompleteResult
from .resolver import AutocompleteResolver

logger = logging.getLogger(__name__)

ResultCallback = Callable[[AutocompleteResult], Awaitable[None]]


class AutocompleteField:
    """One autocomplete input.

    Every ``update`` bumps the generation and restarts the debounce timer.
    Once the timer fires the fetch runs to completion, but its result is only
    delivered when no newer update arrived in the meantime, so a slow early
    query can never overwrite a faster later one.
    """

    def __init__(
        self,
        resolver: AutocompleteResolver,
        on_result: ResultCallback,
        debounce_ms: int | None = None,
    ) -> None:
        self.resolver = resolver
        self.on_result = on_result
        ms = settings.autocomplete_debounce_ms if debounce_ms is None else debounce_ms
        self.debounce = ms / 1000
        self.latest: AutocompleteResult | None = None
        self.closed = False
        self._generation = 0
        self._timer: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def generation(self) -> int:
        return self._generation

    def update(self, request: AutocompleteRequest) -> int:
        """Schedule a fetch for ``request`` after the debounce window."""
        if self.closed:
            raise RuntimeError("AutocompleteField is closed")
        self._generation += 1
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(
            self._debounced(self._generation, request)
        )
        return self._generation

    async def _debounced(self, generation: int, request: AutocompleteRequest) -> None:
        await asyncio.sleep(self.debounce)
        task = asyncio.create_task(self._fetch(generation, request))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _fetch(self, generation: int, request: AutocompleteRequest) -> None:
        try:
            result = await self.resolver.resolve(request)
            if generation != self._generation or self.closed:
                logger.debug(
                    "Discarding stale autocomplete result (generation %d, current %d)",
                    generation, self._generation,
                )
                return
            self.latest = result
            await self.on_result(result)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Autocomplete fetch failed (generation %d)", generation)

    async def wait_idle(self) -> None:
        """Wait until no timer or fetch is pending."""
        while True:
            pending = [t for t in (self._timer, *self._inflight) if t is not None and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def close(self) -> None:
        """Cancel the pending timer and any in-flight fetch."""
        self.closed = True
        tasks = [t for t in (self._timer, *self._inflight) if t is not None and not t.done()]
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
