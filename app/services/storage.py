"""Durable key/value storage used for session data such as the watchlist."""

from __future__ import annotations

import json
import logging
from typing import Any

from sqlalchemy import delete

from ..database import Database
from ..db_models import StoredValue

logger = logging.getLogger(__name__)


class PersistentStore:
    """Base class for named blob storage.

    Implementations only provide :meth:`get`, :meth:`set` and :meth:`remove`;
    the JSON helpers are shared.
    """

    async def get(self, key: str) -> str | None:
        raise NotImplementedError

    async def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def remove(self, key: str) -> None:
        raise NotImplementedError

    async def load_json(self, key: str) -> Any | None:
        """Return the decoded value for ``key``.

        Raises ``json.JSONDecodeError`` when the stored blob is not valid JSON.
        """

        raw = await self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def save_json(self, key: str, value: Any) -> None:
        await self.set(key, json.dumps(value, ensure_ascii=False))


class MemoryStore(PersistentStore):
    """Process-local store; contents disappear with the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def remove(self, key: str) -> None:
        self._values.pop(key, None)


class DatabaseStore(PersistentStore):
    """Key/value store persisted in the ``stored_values`` table."""

    def __init__(self, database: Database):
        self._database = database

    async def get(self, key: str) -> str | None:
        async with self._database.session() as session:
            record = await session.get(StoredValue, key)
            return None if record is None else record.value

    async def set(self, key: str, value: str) -> None:
        async with self._database.session() as session:
            record = await session.get(StoredValue, key)
            if record is None:
                session.add(StoredValue(key=key, value=value))
            else:
                record.value = value
            await session.commit()
        logger.debug("Stored %d bytes under %s", len(value), key)

    async def remove(self, key: str) -> None:
        async with self._database.session() as session:
            await session.execute(delete(StoredValue).where(StoredValue.key == key))
            await session.commit()
        logger.debug("Removed stored value %s", key)
