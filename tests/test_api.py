"""HTTP surface tests for the search session API."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app


@pytest.fixture
def catalog_transport(show_payload) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/search/shows":
            query = request.url.params["q"]
            if query == "broken":
                return httpx.Response(500)
            if query == "nothing":
                return httpx.Response(200, json=[])
            return httpx.Response(
                200,
                json=[
                    {
                        "score": 1.0,
                        "show": show_payload(
                            index + 1,
                            genres=["Drama"] if index % 2 else ["Comedy"],
                            rating=float(index % 10),
                        ),
                    }
                    for index in range(13)
                ],
            )
        if path == "/shows/1":
            return httpx.Response(200, json=show_payload(1, name="Friends"))
        if path == "/shows/1/episodes":
            return httpx.Response(
                200, json=[{"id": 11, "season": 1, "number": 1, "name": "Pilot"}]
            )
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def build_settings(tmp_path, **overrides) -> Settings:
    base = {
        "CATALOG_API_URL": "https://catalog.example.com",
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
    }
    base.update(overrides)
    return Settings(_env_file=None, **base)  # type: ignore[arg-type]


def test_search_page_and_filter(tmp_path, catalog_transport) -> None:
    app = create_app(build_settings(tmp_path), transport=catalog_transport)

    with TestClient(app) as client:
        state = client.get("/state", params={"wait": "true"}).json()
        assert state["query"] == "friends"
        assert state["status"] == "content"
        assert state["pageSize"] == 6
        assert state["filteredCount"] == 13
        assert state["totalPages"] == 3
        assert [item["id"] for item in state["items"]] == [1, 2, 3, 4, 5, 6]
        assert state["options"] == {"genres": ["Comedy", "Drama"], "languages": ["English"]}

        state = client.put("/page", json={"page": 3}).json()
        assert [item["id"] for item in state["items"]] == [13]

        state = client.put("/page-size", json={"pageSize": 12}).json()
        assert state["page"] == 1
        assert state["totalPages"] == 2

        state = client.patch("/filters", json={"minRating": 8}).json()
        assert state["filters"]["minRating"] == 8
        assert [item["id"] for item in state["items"]] == [9, 10]

        state = client.patch("/filters", json={"genre": "Drama"}).json()
        assert [item["id"] for item in state["items"]] == [10]


def test_invalid_page_size_is_rejected(tmp_path, catalog_transport) -> None:
    app = create_app(build_settings(tmp_path), transport=catalog_transport)

    with TestClient(app) as client:
        response = client.put("/page-size", json={"pageSize": 7})

    assert response.status_code == 400


def test_negative_min_rating_is_rejected(tmp_path, catalog_transport) -> None:
    app = create_app(build_settings(tmp_path), transport=catalog_transport)

    with TestClient(app) as client:
        client.patch("/filters", json={"minRating": 3})
        response = client.patch("/filters", json={"minRating": -1})
        state = client.get("/state").json()

    assert response.status_code == 400
    assert "negative" in response.json()["detail"]
    assert state["filters"]["minRating"] == 3


def test_error_and_empty_states(tmp_path, catalog_transport) -> None:
    app = create_app(build_settings(tmp_path), transport=catalog_transport)

    with TestClient(app) as client:
        client.get("/state", params={"wait": "true"})

        state = client.put("/query", params={"wait": "true"}, json={"query": "broken"}).json()
        assert state["status"] == "error"
        assert "500" in state["error"]
        assert len(state["results"]) == 13

        state = client.put("/query", params={"wait": "true"}, json={"query": "nothing"}).json()
        assert state["status"] == "empty"
        assert state["error"] is None
        assert state["results"] == []


def test_watchlist_is_persisted_across_restarts(tmp_path, catalog_transport) -> None:
    settings = build_settings(tmp_path)
    first = create_app(settings, transport=catalog_transport)
    show = {"id": 1, "name": "Friends", "genres": ["Comedy"], "rating": 8.9}

    with TestClient(first) as client:
        assert [entry["id"] for entry in client.post("/watchlist", json=show).json()] == [1]
        assert len(client.post("/watchlist", json=show).json()) == 1
        client.post("/watchlist", json={"id": 2, "name": "Frasier"})
        assert [entry["id"] for entry in client.delete("/watchlist/1").json()] == [2]

    second = create_app(settings, transport=catalog_transport)
    with TestClient(second) as client:
        watchlist = client.get("/watchlist").json()
        assert [entry["id"] for entry in watchlist] == [2]
        assert client.delete("/watchlist").json() == []

    third = create_app(settings, transport=catalog_transport)
    with TestClient(third) as client:
        assert client.get("/watchlist").json() == []


def test_show_detail(tmp_path, catalog_transport) -> None:
    app = create_app(build_settings(tmp_path), transport=catalog_transport)

    with TestClient(app) as client:
        response = client.get("/shows/1")
        missing = client.get("/shows/2")

    assert response.status_code == 200
    payload = response.json()
    assert payload["show"]["name"] == "Friends"
    assert payload["show"]["imageUrl"] == "https://static.example.com/1/medium.jpg"
    assert payload["summary"] == "Summary of show 1"
    assert payload["episodes"] == [
        {"id": 11, "season": 1, "number": 1, "name": "Pilot", "code": "1x1"}
    ]
    assert missing.status_code == 404


def test_healthcheck(tmp_path, catalog_transport) -> None:
    app = create_app(build_settings(tmp_path), transport=catalog_transport)

    with TestClient(app) as client:
        assert client.get("/healthz").json() == {"status": "ok"}
