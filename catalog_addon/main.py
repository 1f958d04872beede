"""FastAPI entrypoint serving the addon manifest, catalog and meta routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from catalog_addon.addon import MANIFEST, handle_catalog, handle_meta
from catalog_addon.core.config import get_settings
from catalog_addon.core.logging_config import configure_logging
from catalog_addon.services.cache import ExpiringCache
from catalog_addon.services.catalog import CatalogService
from catalog_addon.services.tmdb import TMDbClient


logger = logging.getLogger(__name__)


class CatalogResponse(BaseModel):
    metas: list[dict[str, Any]] = Field(default_factory=list)


class MetaResponse(BaseModel):
    meta: dict[str, Any] = Field(default_factory=dict)


def build_catalog_service() -> CatalogService:
    """Create the process-wide cache and TMDb client."""

    settings = get_settings()
    return CatalogService(
        TMDbClient(),
        ExpiringCache(ttl_seconds=settings.cache_ttl_seconds),
        id_prefix=settings.id_prefix,
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Configure logging and report missing credentials before serving."""

    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.tmdb_api_key:
        logger.warning("TMDB_API_KEY is not set; catalog and meta requests will return empty results")
    yield


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def create_app(catalog_service: CatalogService | None = None) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Multi-Industry Movie Catalog", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.state.catalog_service = catalog_service or build_catalog_service()

    @app.get("/manifest.json")
    async def manifest() -> dict[str, Any]:
        return MANIFEST

    @app.get("/catalog/{content_type}/{catalog_id}.json", response_model=CatalogResponse)
    async def catalog(
        content_type: str,
        catalog_id: str,
        service: CatalogService = Depends(get_catalog_service),
    ) -> CatalogResponse:
        result = await handle_catalog(service, content_type=content_type, catalog_id=catalog_id, extra={})
        return CatalogResponse(**result)

    @app.get("/catalog/{content_type}/{catalog_id}/{extra}.json", response_model=CatalogResponse)
    async def catalog_with_extra(
        content_type: str,
        catalog_id: str,
        extra: str,
        service: CatalogService = Depends(get_catalog_service),
    ) -> CatalogResponse:
        result = await handle_catalog(
            service,
            content_type=content_type,
            catalog_id=catalog_id,
            extra=_parse_extra(extra),
        )
        return CatalogResponse(**result)

    @app.get("/meta/{content_type}/{item_id}.json", response_model=MetaResponse)
    async def meta(
        content_type: str,
        item_id: str,
        service: CatalogService = Depends(get_catalog_service),
    ) -> MetaResponse:
        result = await handle_meta(service, content_type=content_type, item_id=item_id)
        return MetaResponse(**result)

    return app


def _parse_extra(raw: str) -> dict[str, str]:
    """Decode the ``genre=Action&year=2020`` path segment used for catalog extras."""

    return dict(parse_qsl(raw, keep_blank_values=False))


app = create_app()
