"""Cache-fronted access to TMDb discover and detail lookups."""

from __future__ import annotations

import logging

from catalog_addon.services.cache import ExpiringCache
from catalog_addon.services.models import (
    CatalogFilters,
    MovieDetail,
    MovieSummary,
    detail_cache_key,
)
from catalog_addon.services.tmdb import TMDbClient


logger = logging.getLogger(__name__)


class CatalogService:
    """Serve catalog and meta lookups from the cache, falling back to TMDb.

    Only successful fetches are cached. A failed fetch collapses to an empty
    list or ``None`` and the next request for the same key goes upstream again.
    """

    def __init__(
        self,
        client: TMDbClient,
        cache: ExpiringCache,
        *,
        id_prefix: str = "tmdb",
    ) -> None:
        self.client = client
        self.cache = cache
        self.id_prefix = id_prefix

    async def list_movies(self, filters: CatalogFilters) -> list[MovieSummary]:
        key = filters.cache_key()
        entry = self.cache.get(key)
        if entry is not None:
            logger.debug("Cache hit for %s", filters)
            return entry.payload

        logger.debug("Cache miss for %s", filters)
        result = await self.client.fetch_list(filters)
        if not result.ok:
            return []
        self.cache.put(key, result.payload)
        return result.payload

    async def movie_detail(self, item_id: str) -> MovieDetail | None:
        movie_id = self.parse_item_id(item_id)
        if movie_id is None:
            logger.debug("Ignoring meta request for foreign id %r", item_id)
            return None

        key = detail_cache_key(movie_id)
        entry = self.cache.get(key)
        if entry is not None:
            logger.debug("Cache hit for movie %s", movie_id)
            return entry.payload

        logger.debug("Cache miss for movie %s", movie_id)
        result = await self.client.fetch_detail(movie_id)
        if not result.ok:
            return None
        self.cache.put(key, result.payload)
        return result.payload

    def parse_item_id(self, item_id: str) -> str | None:
        """Extract the upstream id from ``<prefix>:<id>``, or ``None`` if it is not ours."""

        prefix, sep, upstream_id = item_id.partition(":")
        if not sep or prefix != self.id_prefix or not upstream_id.isdigit():
            return None
        return upstream_id
