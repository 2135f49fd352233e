"""Search session state and its pure transition function."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Sequence, Union

from .config import SUPPORTED_PAGE_SIZES
from .filters import apply_filters, merge_filters
from .models import FilterSpec, FilterUpdate, Show
from .pagination import clamp_page
from .watchlist import add_entry, dedupe, remove_entry


@dataclass(frozen=True, slots=True)
class SearchState:
    """Root aggregate for one search session."""

    query: str
    filters: FilterSpec = field(default_factory=FilterSpec)
    loading: bool = False
    error: str | None = None
    results: tuple[Show, ...] = ()
    page: int = 1
    page_size: int = 6
    watchlist: tuple[Show, ...] = ()

    def filtered(self) -> list[Show]:
        return apply_filters(self.results, self.filters)


@dataclass(frozen=True, slots=True)
class SetQuery:
    query: str


@dataclass(frozen=True, slots=True)
class FetchStarted:
    pass


@dataclass(frozen=True, slots=True)
class FetchSucceeded:
    shows: tuple[Show, ...]


@dataclass(frozen=True, slots=True)
class FetchFailed:
    message: str


@dataclass(frozen=True, slots=True)
class SetFilters:
    update: FilterUpdate


@dataclass(frozen=True, slots=True)
class SetPageSize:
    page_size: int


@dataclass(frozen=True, slots=True)
class SetPage:
    page: int


@dataclass(frozen=True, slots=True)
class SetWatchlist:
    shows: tuple[Show, ...]


@dataclass(frozen=True, slots=True)
class AddToWatchlist:
    show: Show


@dataclass(frozen=True, slots=True)
class RemoveFromWatchlist:
    show_id: int


@dataclass(frozen=True, slots=True)
class ClearWatchlist:
    pass


Action = Union[
    SetQuery,
    FetchStarted,
    FetchSucceeded,
    FetchFailed,
    SetFilters,
    SetPageSize,
    SetPage,
    SetWatchlist,
    AddToWatchlist,
    RemoveFromWatchlist,
    ClearWatchlist,
]


def initial_state(query: str, *, page_size: int = 6) -> SearchState:
    if page_size not in SUPPORTED_PAGE_SIZES:
        raise ValueError(f"Unsupported page size: {page_size}")
    return SearchState(query=query, page_size=page_size)


def reduce(state: SearchState, action: Action) -> SearchState:
    """Return the state following ``action``.

    Actions that change nothing return ``state`` itself. Raises ``ValueError``
    for page sizes outside :data:`SUPPORTED_PAGE_SIZES`.
    """

    if isinstance(action, SetQuery):
        if action.query == state.query:
            return state
        return replace(state, query=action.query)

    if isinstance(action, FetchStarted):
        return replace(state, loading=True, error=None)

    if isinstance(action, FetchSucceeded):
        # Every successful fetch starts over on the first page, retries included.
        return replace(
            state, loading=False, error=None, results=tuple(action.shows), page=1
        )

    if isinstance(action, FetchFailed):
        return replace(state, loading=False, error=action.message)

    if isinstance(action, SetFilters):
        return replace(state, filters=merge_filters(state.filters, action.update), page=1)

    if isinstance(action, SetPageSize):
        if action.page_size not in SUPPORTED_PAGE_SIZES:
            raise ValueError(f"Unsupported page size: {action.page_size}")
        return replace(state, page_size=action.page_size, page=1)

    if isinstance(action, SetPage):
        page = clamp_page(action.page, len(state.filtered()), state.page_size)
        if page == state.page:
            return state
        return replace(state, page=page)

    if isinstance(action, SetWatchlist):
        return replace(state, watchlist=dedupe(action.shows))

    if isinstance(action, AddToWatchlist):
        return _with_watchlist(state, add_entry(state.watchlist, action.show))

    if isinstance(action, RemoveFromWatchlist):
        return _with_watchlist(state, remove_entry(state.watchlist, action.show_id))

    if isinstance(action, ClearWatchlist):
        return _with_watchlist(state, ())

    raise TypeError(f"Unknown action: {action!r}")


def _with_watchlist(state: SearchState, entries: Sequence[Show]) -> SearchState:
    if entries is state.watchlist or (not entries and not state.watchlist):
        return state
    return replace(state, watchlist=tuple(entries))
