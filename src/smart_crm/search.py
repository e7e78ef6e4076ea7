"""
Debounced search: only the query that survives a quiet interval is sent.
"""

import asyncio
from typing import Any, Awaitable, Callable

import structlog

from .config import config
from .result import Result

logger = structlog.get_logger(__name__)

SearchFn = Callable[[str], Awaitable[Result[list[Any]]]]


class DebouncedSearch:
    """
    Runs ``search_fn`` for the latest query once typing pauses.

    Each ``update_query`` call cancels the pending search and restarts the
    interval, so a burst of keystrokes yields one search for the final text.
    Must be driven from a running event loop.

    Args:
        search_fn: Async search returning a Result of matching items
        interval_ms: Quiet interval before searching
    """

    def __init__(self, search_fn: SearchFn, interval_ms: int | None = None):
        self.search_fn = search_fn
        self.interval_ms = interval_ms if interval_ms is not None else config.SEARCH_DEBOUNCE_MS
        self.query = ''
        self.debounced_query = ''
        self.results: list[Any] = []
        self.is_searching = False
        self.error: str | None = None
        self._pending: asyncio.Task | None = None

    def _cancel_pending(self) -> None:
        if self._pending and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def update_query(self, query: str) -> None:
        self.query = query
        self._cancel_pending()
        self._pending = asyncio.get_running_loop().create_task(self._run_after_interval(query))

    async def _run_after_interval(self, query: str) -> None:
        await asyncio.sleep(self.interval_ms / 1000)
        await self._search(query)

    async def _search(self, query: str) -> None:
        self.debounced_query = query
        if not query.strip():
            self.results = []
            self.error = None
            return

        self.is_searching = True
        self.error = None
        try:
            result = await self.search_fn(query)
        finally:
            self.is_searching = False

        if result.success:
            self.results = list(result.data or [])
        else:
            self.results = []
            self.error = result.error_message
            logger.warning('search.failed', query=query, error=self.error)

    async def wait(self) -> None:
        """Block until the pending search (if any) has finished."""
        if self._pending:
            try:
                await self._pending
            except asyncio.CancelledError:
                pass

    async def flush(self) -> list[Any]:
        """Search for the current query now instead of waiting out the interval."""
        self._cancel_pending()
        await self._search(self.query)
        return self.results

    def clear(self) -> None:
        self._cancel_pending()
        self.query = ''
        self.debounced_query = ''
        self.results = []
        self.error = None
        self.is_searching = False
