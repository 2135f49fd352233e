"""Entry point for the FastAPI-powered MovieClub search session."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, settings as default_settings
from .controller import SearchController, SearchView
from .database import Database
from .detail import ShowDetailView
from .models import Episode, FilterUpdate, Show
from .services.catalog import CatalogClient
from .services.storage import DatabaseStore
from .state import initial_state
from .watchlist import WatchlistStore

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class QueryRequest(BaseModel):
    query: str


class PageSizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page_size: int = Field(alias="pageSize")


class PageRequest(BaseModel):
    page: int


class EpisodeItem(BaseModel):
    id: int
    season: int
    number: int | None
    name: str
    code: str

    @classmethod
    def from_episode(cls, episode: Episode) -> "EpisodeItem":
        return cls(
            id=episode.id,
            season=episode.season,
            number=episode.number,
            name=episode.name,
            code=episode.code(),
        )


class ShowDetailResponse(BaseModel):
    show: Show
    summary: str
    episodes: list[EpisodeItem]


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    resolved = settings or default_settings

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        exit_stack = AsyncExitStack()
        client_kwargs: dict[str, Any] = {
            "base_url": str(resolved.catalog_api_url),
            "timeout": httpx.Timeout(resolved.catalog_timeout_seconds, connect=5.0),
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        http_client = await exit_stack.enter_async_context(
            httpx.AsyncClient(**client_kwargs)
        )
        database = Database(resolved.database_url)
        await database.create_all()

        catalog = CatalogClient(http_client)
        controller = SearchController(
            initial_state(resolved.default_query, page_size=resolved.default_page_size),
            catalog,
            WatchlistStore(DatabaseStore(database), resolved.watchlist_storage_key),
        )

        fastapi_app.state.catalog = catalog
        fastapi_app.state.controller = controller
        fastapi_app.state.database = database
        await controller.start()
        logger.info(
            "Search session ready against %s (watchlist key %s)",
            resolved.catalog_api_url,
            resolved.watchlist_storage_key,
        )

        try:
            yield
        finally:  # pragma: no cover - teardown path exercised at runtime
            await controller.stop()
            await database.dispose()
            await exit_stack.aclose()

    fastapi_app = FastAPI(
        title=resolved.app_name,
        description="Show search with local filters, paging and a watch-later list",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_controller(request: Request) -> SearchController:
    controller = getattr(request.app.state, "controller", None)
    if not isinstance(controller, SearchController):
        raise RuntimeError("Search controller not initialised")
    return controller


def get_catalog(request: Request) -> CatalogClient:
    catalog = getattr(request.app.state, "catalog", None)
    if not isinstance(catalog, CatalogClient):
        raise RuntimeError("Catalog client not initialised")
    return catalog


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/state", response_model=SearchView)
    async def read_state(request: Request, wait: bool = False) -> SearchView:
        controller = get_controller(request)
        if wait:
            await controller.wait_for_fetch()
        return controller.view()

    @fastapi_app.put("/query", response_model=SearchView)
    async def update_query(
        request: Request, body: QueryRequest, wait: bool = False
    ) -> SearchView:
        controller = get_controller(request)
        controller.set_query(body.query)
        if wait:
            await controller.wait_for_fetch()
        return controller.view()

    @fastapi_app.post("/retry", response_model=SearchView)
    async def retry_search(request: Request, wait: bool = False) -> SearchView:
        controller = get_controller(request)
        controller.retry()
        if wait:
            await controller.wait_for_fetch()
        return controller.view()

    @fastapi_app.patch("/filters", response_model=SearchView)
    async def update_filters(request: Request, body: FilterUpdate) -> SearchView:
        controller = get_controller(request)
        try:
            controller.set_filters(body)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return controller.view()

    @fastapi_app.put("/page-size", response_model=SearchView)
    async def update_page_size(request: Request, body: PageSizeRequest) -> SearchView:
        controller = get_controller(request)
        try:
            controller.set_page_size(body.page_size)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return controller.view()

    @fastapi_app.put("/page", response_model=SearchView)
    async def update_page(request: Request, body: PageRequest) -> SearchView:
        controller = get_controller(request)
        controller.set_page(body.page)
        return controller.view()

    @fastapi_app.get("/watchlist", response_model=list[Show])
    async def read_watchlist(request: Request) -> list[Show]:
        return list(get_controller(request).state.watchlist)

    @fastapi_app.post("/watchlist", response_model=list[Show])
    async def add_watchlist_entry(request: Request, show: Show) -> list[Show]:
        controller = get_controller(request)
        await controller.add_to_watchlist(show)
        return list(controller.state.watchlist)

    @fastapi_app.delete("/watchlist/{show_id}", response_model=list[Show])
    async def remove_watchlist_entry(request: Request, show_id: int) -> list[Show]:
        controller = get_controller(request)
        await controller.remove_from_watchlist(show_id)
        return list(controller.state.watchlist)

    @fastapi_app.delete("/watchlist", response_model=list[Show])
    async def clear_watchlist(request: Request) -> list[Show]:
        controller = get_controller(request)
        await controller.clear_watchlist()
        return list(controller.state.watchlist)

    @fastapi_app.get("/shows/{show_id}", response_model=ShowDetailResponse)
    async def show_detail(request: Request, show_id: int) -> ShowDetailResponse:
        view = ShowDetailView(get_catalog(request))
        await view.open(show_id)
        if view.error is not None:
            raise HTTPException(status_code=502, detail=view.error)
        if view.show is None:
            raise HTTPException(status_code=404, detail=f"Show {show_id} not found")
        return ShowDetailResponse(
            show=view.show,
            summary=view.show.summary_text(),
            episodes=[EpisodeItem.from_episode(episode) for episode in view.episodes],
        )


app = create_app()
