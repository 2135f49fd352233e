"""Watch-later list helpers and their persistence adapter."""

from __future__ import annotations

import logging
from typing import Sequence

from pydantic import TypeAdapter, ValidationError

from .models import Show
from .services.storage import PersistentStore

logger = logging.getLogger(__name__)

_SHOW_LIST = TypeAdapter(list[Show])


def add_entry(entries: tuple[Show, ...], show: Show) -> tuple[Show, ...]:
    """Append ``show`` unless an entry with the same id exists.

    The original tuple is returned untouched when nothing changes so callers
    can detect no-ops by identity.
    """

    if any(entry.id == show.id for entry in entries):
        return entries
    return (*entries, show)


def remove_entry(entries: tuple[Show, ...], show_id: int) -> tuple[Show, ...]:
    if not any(entry.id == show_id for entry in entries):
        return entries
    return tuple(entry for entry in entries if entry.id != show_id)


def dedupe(shows: Sequence[Show]) -> tuple[Show, ...]:
    """Keep the first occurrence of every id, preserving order."""

    entries: tuple[Show, ...] = ()
    for show in shows:
        entries = add_entry(entries, show)
    return entries


class WatchlistStore:
    """Mirrors the watchlist into a single key of a :class:`PersistentStore`.

    The whole list is rewritten on every change; clearing removes the key.
    """

    def __init__(self, store: PersistentStore, key: str):
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    async def load(self) -> tuple[Show, ...]:
        """Return the persisted watchlist, or an empty one if it is missing or unreadable."""

        try:
            payload = await self._store.load_json(self._key)
        except ValueError:
            logger.warning("Discarding unreadable watchlist stored under %s", self._key)
            return ()
        if payload is None:
            return ()
        try:
            shows = _SHOW_LIST.validate_python(payload)
        except ValidationError as exc:
            logger.warning(
                "Discarding malformed watchlist stored under %s (%d errors)",
                self._key,
                exc.error_count(),
            )
            return ()
        return dedupe(shows)

    async def save(self, entries: Sequence[Show]) -> None:
        await self._store.save_json(self._key, [show.to_storage() for show in entries])

    async def erase(self) -> None:
        await self._store.remove(self._key)
