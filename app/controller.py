"""Search session orchestration: fetch lifecycle, derived view and watchlist sync."""

from __future__ import annotations

import asyncio
import itertools
import logging
from contextlib import suppress
from typing import Literal, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .filters import derive_options
from .models import FilterOptions, FilterSpec, FilterUpdate, Show
from .pagination import page_bounds, slice_page
from .services.catalog import CatalogError
from .state import (
    Action,
    AddToWatchlist,
    ClearWatchlist,
    FetchFailed,
    FetchStarted,
    FetchSucceeded,
    RemoveFromWatchlist,
    SearchState,
    SetFilters,
    SetPage,
    SetPageSize,
    SetQuery,
    SetWatchlist,
    reduce,
)
from .watchlist import WatchlistStore

logger = logging.getLogger(__name__)

ViewStatus = Literal["loading", "error", "empty", "content"]

GENERIC_FETCH_ERROR = "Fetch error"


class ShowSearcher(Protocol):
    async def search(self, text: str) -> Sequence[Show]: ...


class SearchView(BaseModel):
    """Read-only snapshot handed to the presentation layer."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str
    filters: FilterSpec
    loading: bool
    error: str | None
    results: list[Show]
    page: int
    page_size: int = Field(alias="pageSize")
    watchlist: list[Show]
    options: FilterOptions
    filtered_count: int = Field(alias="filteredCount")
    total_pages: int = Field(alias="totalPages")
    items: list[Show]
    status: ViewStatus


def build_view(state: SearchState) -> SearchView:
    """Derive the visible page, filter options and presentation status."""

    filtered = state.filtered()
    if state.loading:
        status: ViewStatus = "loading"
    elif state.error is not None:
        status = "error"
    elif not filtered:
        status = "empty"
    else:
        status = "content"

    return SearchView(
        query=state.query,
        filters=state.filters,
        loading=state.loading,
        error=state.error,
        results=list(state.results),
        page=state.page,
        page_size=state.page_size,
        watchlist=list(state.watchlist),
        options=derive_options(state.results),
        filtered_count=len(filtered),
        total_pages=page_bounds(len(filtered), state.page_size),
        items=slice_page(filtered, state.page, state.page_size),
        status=status,
    )


class SearchController:
    """Owns one :class:`SearchState` and is the only place it changes.

    Query changes schedule a fetch tagged with a fresh attempt token; a
    response is applied only while its token is still the latest one issued,
    so a slow answer to an old query can never overwrite a newer one.
    """

    def __init__(
        self,
        state: SearchState,
        catalog: ShowSearcher,
        watchlist_store: WatchlistStore,
    ):
        self._state = state
        self._catalog = catalog
        self._watchlist_store = watchlist_store
        self._attempts = itertools.count(1)
        self._current_attempt = 0
        self._fetch_tasks: set[asyncio.Task[None]] = set()
        self._watchlist_lock = asyncio.Lock()

    @property
    def state(self) -> SearchState:
        return self._state

    @property
    def current_attempt(self) -> int:
        return self._current_attempt

    def view(self) -> SearchView:
        return build_view(self._state)

    def dispatch(self, action: Action) -> SearchState:
        """Apply ``action`` to the state. This is the single transition point."""

        self._state = reduce(self._state, action)
        return self._state

    # Lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Hydrate the watchlist once and fetch results for the initial query."""

        self.dispatch(SetWatchlist(await self._watchlist_store.load()))
        logger.info(
            "Search session started with %d watchlist entries",
            len(self._state.watchlist),
        )
        self._schedule_fetch()

    async def stop(self) -> None:
        tasks = list(self._fetch_tasks)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task

    async def wait_for_fetch(self) -> None:
        """Wait until every fetch issued so far has settled."""

        while self._fetch_tasks:
            await asyncio.gather(*list(self._fetch_tasks), return_exceptions=True)

    # Search transitions --------------------------------------------------

    def set_query(self, query: str) -> None:
        """Store ``query`` and, if it changed, start a fetch for it."""

        previous = self._state
        if self.dispatch(SetQuery(query)) is previous:
            return
        self._schedule_fetch()

    def retry(self) -> None:
        """Fetch the current query again."""

        self._schedule_fetch()

    def begin_fetch(self) -> None:
        self.dispatch(FetchStarted())

    def complete_fetch(self, shows: Sequence[Show]) -> None:
        self.dispatch(FetchSucceeded(tuple(shows)))

    def fail_fetch(self, message: str) -> None:
        self.dispatch(FetchFailed(message))

    def set_filters(self, update: FilterUpdate) -> None:
        self.dispatch(SetFilters(update))

    def set_page_size(self, page_size: int) -> None:
        self.dispatch(SetPageSize(page_size))

    def set_page(self, page: int) -> None:
        self.dispatch(SetPage(page))

    # Watchlist transitions -----------------------------------------------

    async def add_to_watchlist(self, show: Show) -> None:
        previous = self._state
        if self.dispatch(AddToWatchlist(show)) is previous:
            return
        await self._sync_watchlist(previous.watchlist)

    async def remove_from_watchlist(self, show_id: int) -> None:
        previous = self._state
        if self.dispatch(RemoveFromWatchlist(show_id)) is previous:
            return
        await self._sync_watchlist(previous.watchlist)

    async def clear_watchlist(self) -> None:
        previous = self._state
        self.dispatch(ClearWatchlist())
        await self._sync_watchlist(previous.watchlist, erase=True)

    async def _sync_watchlist(
        self, previous: tuple[Show, ...], *, erase: bool = False
    ) -> None:
        """Persist the current watchlist, rolling the state back if the write fails."""

        # Writes are serialised; each one mirrors the state at the time it runs.
        async with self._watchlist_lock:
            entries = self._state.watchlist
            try:
                if erase and not entries:
                    await self._watchlist_store.erase()
                else:
                    await self._watchlist_store.save(entries)
            except Exception:
                logger.exception(
                    "Failed to persist watchlist; restoring %d entries", len(previous)
                )
                self.dispatch(SetWatchlist(previous))
                raise

    # Fetch reaction ------------------------------------------------------

    def _schedule_fetch(self) -> asyncio.Task[None]:
        attempt = next(self._attempts)
        self._current_attempt = attempt
        self.begin_fetch()
        task = asyncio.create_task(self._run_fetch(attempt, self._state.query))
        self._fetch_tasks.add(task)
        task.add_done_callback(self._fetch_tasks.discard)
        return task

    def _is_current(self, attempt: int) -> bool:
        return attempt == self._current_attempt

    async def _run_fetch(self, attempt: int, query: str) -> None:
        logger.info("Fetching shows for %r (attempt %d)", query, attempt)
        try:
            shows = await self._catalog.search(query)
        except CatalogError as exc:
            if not self._is_current(attempt):
                logger.debug("Ignoring failure of superseded attempt %d", attempt)
                return
            self.fail_fetch(exc.message or GENERIC_FETCH_ERROR)
            return
        except Exception:
            logger.exception("Unexpected error while fetching shows for %r", query)
            if self._is_current(attempt):
                self.fail_fetch(GENERIC_FETCH_ERROR)
            return

        if not self._is_current(attempt):
            logger.debug("Discarding stale results for %r (attempt %d)", query, attempt)
            return
        self.complete_fetch(shows)
