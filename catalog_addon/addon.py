"""Addon manifest and the catalog/meta request handlers behind the HTTP routes."""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from catalog_addon.services.catalog import CatalogService
from catalog_addon.services.models import CatalogFilters
from catalog_addon.services.tmdb import MOVIE_GENRES


logger = logging.getLogger(__name__)

MOVIE_CATALOG_ID = "multi-industry-movies"
LANGUAGE_OPTIONS = ["hi", "en", "es", "fr", "zh", "ja"]  # Hindi, English, Spanish, French, Chinese, Japanese
CATALOG_GENRES = ["Action", "Comedy", "Drama", "Romance"]

_GENRE_IDS = {name.lower(): genre_id for genre_id, name in MOVIE_GENRES.items()}

MANIFEST: dict[str, Any] = {
    "id": "org.stremio.multi-industry",
    "version": "1.0.0",
    "name": "Multi-Industry Movies",
    "description": "An addon to list movies by year, genre, rating, runtime, and language.",
    "resources": ["catalog", "meta"],
    "types": ["movie"],
    "idPrefixes": ["tmdb:"],
    "catalogs": [
        {
            "type": "movie",
            "id": MOVIE_CATALOG_ID,
            "name": "Movies",
            "genres": CATALOG_GENRES,
            "extra": [
                {"name": "genre"},
                {"name": "year", "isRequired": True},
                {"name": "rating"},
                {"name": "runtime"},
                {"name": "language", "options": LANGUAGE_OPTIONS},
            ],
        }
    ],
}


def resolve_genre(raw: str | None) -> str | None:
    """Map a catalog genre name to its TMDb id; ids and unknown names pass through."""

    if not raw:
        return None
    value = raw.strip()
    if value.isdigit():
        return value
    genre_id = _GENRE_IDS.get(value.lower())
    return str(genre_id) if genre_id is not None else value


def build_filters(extra: Mapping[str, str]) -> CatalogFilters | None:
    """Turn catalog extras into filters, or ``None`` when they cannot be used."""

    try:
        year = int(extra["year"])
        min_rating = float(extra["rating"]) if extra.get("rating") else None
        min_runtime = int(extra["runtime"]) if extra.get("runtime") else None
        if min_rating is not None and not math.isfinite(min_rating):
            raise ValueError(f"rating must be a finite number, got {extra['rating']!r}")
    except (KeyError, ValueError) as exc:
        logger.info("Rejecting catalog extras %s: %s", dict(extra), exc)
        return None
    return CatalogFilters(
        year=year,
        genre=resolve_genre(extra.get("genre")),
        min_rating=min_rating,
        min_runtime=min_runtime,
        language=extra.get("language") or None,
    )


async def handle_catalog(
    service: CatalogService,
    *,
    content_type: str,
    catalog_id: str,
    extra: Mapping[str, str],
) -> dict[str, Any]:
    if content_type != "movie" or catalog_id != MOVIE_CATALOG_ID:
        return {"metas": []}
    filters = build_filters(extra)
    if filters is None:
        return {"metas": []}
    movies = await service.list_movies(filters)
    return {"metas": [movie.as_meta() for movie in movies]}


async def handle_meta(service: CatalogService, *, content_type: str, item_id: str) -> dict[str, Any]:
    if content_type != "movie":
        return {"meta": {}}
    movie = await service.movie_detail(item_id)
    return {"meta": movie.as_meta() if movie else {}}
