"""Client for the remote show catalog (TVmaze-compatible API)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from ..models import Episode, Show

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when the catalog cannot be reached or returns unusable data."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CatalogClient:
    """Thin wrapper around the catalog's search and show endpoints."""

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = http_client

    async def search(self, text: str) -> list[Show]:
        """Return the shows matching ``text`` in the service's relevance order."""

        payload = await self._get_json("/search/shows", params={"q": text})
        if not isinstance(payload, list):
            raise CatalogError("Unexpected search response from catalog")
        shows: list[Show] = []
        for entry in payload:
            if not isinstance(entry, dict) or not isinstance(entry.get("show"), dict):
                continue
            try:
                shows.append(Show.from_api_payload(entry["show"]))
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid show in results for %r (%d errors)",
                    text,
                    exc.error_count(),
                )
        logger.info("Catalog search for %r returned %d shows", text, len(shows))
        return shows

    async def get_show_detail(self, show_id: int) -> Show:
        payload = await self._get_json(f"/shows/{show_id}")
        if not isinstance(payload, dict):
            raise CatalogError(f"Unexpected response for show {show_id}")
        try:
            return Show.from_api_payload(payload)
        except ValidationError as exc:
            raise CatalogError(f"Invalid record for show {show_id}") from exc

    async def get_episodes(self, show_id: int) -> list[Episode]:
        payload = await self._get_json(f"/shows/{show_id}/episodes")
        if not isinstance(payload, list):
            raise CatalogError(f"Unexpected episode list for show {show_id}")
        try:
            return [
                Episode.from_api_payload(entry)
                for entry in payload
                if isinstance(entry, dict)
            ]
        except ValidationError as exc:
            raise CatalogError(f"Invalid episode for show {show_id}") from exc

    async def get_show_with_episodes(self, show_id: int) -> tuple[Show, list[Episode]]:
        """Fetch a show and its episodes concurrently."""

        show, episodes = await asyncio.gather(
            self.get_show_detail(show_id), self.get_episodes(show_id)
        )
        return show, episodes

    async def _get_json(
        self, path: str, *, params: dict[str, Any] | None = None
    ) -> Any:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.warning("Catalog request %s failed with status %s", path, status)
            raise CatalogError(
                f"Catalog request failed with status code {status}",
                status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Catalog request %s failed: %s", path, exc)
            raise CatalogError(
                f"Could not reach the catalog ({exc.__class__.__name__})"
            ) from exc

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Catalog returned malformed JSON for %s", path)
            raise CatalogError("Catalog returned a malformed response") from exc
