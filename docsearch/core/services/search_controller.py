"""Search controller - debounces query updates into one in-flight search."""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from ..models.search import SearchState
from .search_service import SearchService

logger = logging.getLogger(__name__)

StateListener = Callable[[SearchState], None]


class ControllerStatus(Enum):
    IDLE = "idle"
    PENDING = "pending"
    EVALUATING = "evaluating"


class SearchController:
    """Coalesces rapid query changes; only the newest query is evaluated.

    Must be used from within a running event loop.
    """

    def __init__(self, search_service: SearchService, quiet_window: float = 0.8):
        """Initialize controller.

        Args:
            search_service: Ranker invoked once the query settles.
            quiet_window: Seconds without updates before a search starts.
        """
        self._search_service = search_service
        self._quiet_window = quiet_window
        self._status = ControllerStatus.IDLE
        self._state = SearchState()
        self._query = ""
        self._task: Optional[asyncio.Task] = None
        self._cancel_event: Optional[asyncio.Event] = None
        self._listeners: list[StateListener] = []

    @property
    def status(self) -> ControllerStatus:
        return self._status

    @property
    def state(self) -> SearchState:
        """Latest completed search state."""
        return self._state

    @property
    def query(self) -> str:
        return self._query

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register listener for new search states; returns unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_query(self, query: str) -> None:
        """Supersede any pending or running search with query."""
        self._query = query
        self._schedule(query, delay=self._quiet_window)

    def refresh(self) -> None:
        """Re-evaluate the current query without waiting for the quiet window."""
        self._schedule(self._query, delay=0.0)

    async def wait(self) -> SearchState:
        """Wait for the current search (if any) and return the latest state."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._state

    async def close(self) -> None:
        """Cancel any pending or running search."""
        task = self._cancel_current()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._status = ControllerStatus.IDLE

    def _schedule(self, query: str, delay: float) -> None:
        self._cancel_current()
        cancel_event = asyncio.Event()
        self._cancel_event = cancel_event
        self._status = ControllerStatus.PENDING
        self._task = asyncio.get_running_loop().create_task(
            self._evaluate(query, delay, cancel_event)
        )

    def _cancel_current(self) -> Optional[asyncio.Task]:
        task = self._task
        if self._cancel_event is not None:
            self._cancel_event.set()
        if task is not None and not task.done():
            task.cancel()
        return task

    async def _evaluate(self, query: str, delay: float, cancel_event: asyncio.Event) -> None:
        try:
            if delay > 0:
                await asyncio.sleep(delay)
            self._status = ControllerStatus.EVALUATING
            state = await self._search_service.search(query, cancel_event=cancel_event)
        except asyncio.CancelledError:
            logger.debug(f"Search superseded: '{query[:50]}'")
            raise
        except Exception as e:
            logger.error(f"Search error: {e}")
            if not cancel_event.is_set():
                self._status = ControllerStatus.IDLE
            return

        if cancel_event.is_set():
            return

        self._state = state
        self._status = ControllerStatus.IDLE
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Search listener failed: {e}")
