"""Loader for a single show's detail page."""

from __future__ import annotations

import itertools
import logging
from typing import Literal, Protocol

from .models import Episode, Show
from .services.catalog import CatalogError

logger = logging.getLogger(__name__)

DetailStatus = Literal["idle", "loading", "error", "not_found", "content"]


class ShowDetailSource(Protocol):
    async def get_show_with_episodes(self, show_id: int) -> tuple[Show, list[Episode]]: ...


class ShowDetailView:
    """Tracks one detail view's load; results for a superseded id or a closed view are dropped."""

    def __init__(self, catalog: ShowDetailSource):
        self._catalog = catalog
        self._generations = itertools.count(1)
        self._generation = 0
        self.show_id: int | None = None
        self.loading = False
        self.error: str | None = None
        self.show: Show | None = None
        self.episodes: list[Episode] = []
        self.not_found = False

    @property
    def status(self) -> DetailStatus:
        if self.loading:
            return "loading"
        if self.error is not None:
            return "error"
        if self.not_found:
            return "not_found"
        if self.show is None:
            return "idle"
        return "content"

    async def open(self, show_id: int) -> bool:
        """Load ``show_id``; return ``False`` if the result was discarded as stale."""

        generation = next(self._generations)
        self._generation = generation
        self.show_id = show_id
        self.loading = True
        self.error = None
        self.not_found = False
        self.show = None
        self.episodes = []

        try:
            show, episodes = await self._catalog.get_show_with_episodes(show_id)
        except CatalogError as exc:
            if generation != self._generation:
                logger.debug("Dropping failed detail load for show %s", show_id)
                return False
            self.loading = False
            if exc.status_code == 404:
                self.not_found = True
            else:
                self.error = exc.message
            return True

        if generation != self._generation:
            logger.debug("Dropping stale detail for show %s", show_id)
            return False
        self.loading = False
        self.show = show
        self.episodes = list(episodes)
        return True

    def close(self) -> None:
        """Invalidate any in-flight load for this view."""

        self._generation = next(self._generations)
        self.loading = False
