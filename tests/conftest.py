"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pytest


# Ensure the application package is importable when running tests without an
# editable install. ``app`` sits at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.models import Show  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


def _show_payload(
    show_id: int,
    *,
    name: str | None = None,
    genres: list[str] | None = None,
    language: str | None = "English",
    rating: float | None = None,
) -> dict[str, Any]:
    return {
        "id": show_id,
        "name": name or f"Show {show_id}",
        "genres": genres if genres is not None else ["Comedy"],
        "language": language,
        "rating": {"average": rating},
        "image": {
            "medium": f"https://static.example.com/{show_id}/medium.jpg",
            "original": f"https://static.example.com/{show_id}/original.jpg",
        },
        "summary": f"<p>Summary of <b>show {show_id}</b></p>",
    }


@pytest.fixture
def show_payload() -> Callable[..., dict[str, Any]]:
    """Factory for remote show records as the catalog returns them."""

    return _show_payload


@pytest.fixture
def make_show() -> Callable[..., Show]:
    """Factory for parsed :class:`Show` instances."""

    def factory(show_id: int, **overrides: Any) -> Show:
        return Show.from_api_payload(_show_payload(show_id, **overrides))

    return factory
