"""Thin async wrapper around the TMDb API for discover and movie detail."""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx

from catalog_addon.core.config import get_settings
from catalog_addon.services.models import (
    CatalogFilters,
    FetchResult,
    MovieDetail,
    MovieSummary,
)


logger = logging.getLogger(__name__)

# TMDb's official movie genre table (GET /genre/movie/list).
MOVIE_GENRES: dict[int, str] = {
    28: "Action",
    12: "Adventure",
    16: "Animation",
    35: "Comedy",
    80: "Crime",
    99: "Documentary",
    18: "Drama",
    10751: "Family",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}


class TMDbError(Exception):
    """Base exception for TMDb-related failures."""


class TMDbConfigError(TMDbError):
    """Raised when the client is missing its API key."""


class TMDbResponseError(TMDbError):
    """Raised when TMDb answers with an error status or an unexpected body."""


class TMDbClient:
    """TMDb HTTP client using API key auth.

    The public ``fetch_*`` coroutines never raise: every failure is logged and
    returned as a failed :class:`FetchResult`.
    """

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        language: str | None = None,
        image_base: str | None = None,
        id_prefix: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.tmdb_api_key
        self.base_url = (base_url or settings.tmdb_base_url).rstrip("/")
        self.language = language or settings.tmdb_language
        self.image_base = (image_base or settings.tmdb_image_base).rstrip("/")
        self.id_prefix = id_prefix or settings.id_prefix
        self.timeout = timeout if timeout is not None else settings.tmdb_timeout_seconds
        self._transport = transport

    async def _request(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self.api_key:
            raise TMDbConfigError("TMDB_API_KEY is not configured")
        url = f"{self.base_url}{path}"
        query: dict[str, Any] = {"api_key": self.api_key, "language": self.language}
        if params:
            query.update({k: v for k, v in params.items() if v is not None})
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(url, params=query)
            try:
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise TMDbResponseError(str(exc)) from exc
            payload = response.json()
        if not isinstance(payload, dict):
            raise TMDbResponseError("TMDb returned unexpected JSON shape (not an object)")
        return payload

    async def fetch_list(self, filters: CatalogFilters) -> FetchResult[list[MovieSummary]]:
        """Return the first page of popular movies matching ``filters``."""

        try:
            payload = await self._request(
                "/discover/movie",
                params={
                    "sort_by": "popularity.desc",
                    "include_adult": "false",
                    "include_video": "false",
                    "page": 1,
                    "primary_release_year": filters.year,
                    "with_genres": filters.genre,
                    "vote_average.gte": filters.min_rating,
                    "with_runtime.gte": filters.min_runtime,
                    "with_original_language": filters.language,
                },
            )
            results = _field(payload, "results", list, required=True)
            movies = [self._to_summary(item) for item in results]
        except (TMDbError, httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Error fetching movies for %s: %s", filters, _describe(exc))
            return FetchResult.failure(_describe(exc))
        logger.debug("TMDb discover returned %d movies for %s", len(movies), filters)
        return FetchResult.success(movies)

    async def fetch_detail(self, movie_id: str) -> FetchResult[MovieDetail]:
        """Return full metadata, credits and trailer for one TMDb movie id."""

        try:
            details = await self._request(
                f"/movie/{movie_id}",
                params={"append_to_response": "credits,videos"},
            )
            movie = self._to_detail(details)
        except (TMDbError, httpx.HTTPError, AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Error fetching movie details for %s: %s", movie_id, _describe(exc))
            return FetchResult.failure(_describe(exc))
        return FetchResult.success(movie)

    def _to_summary(self, item: Any) -> MovieSummary:
        _expect(item, dict, "results[]")
        return MovieSummary(
            id=f"{self.id_prefix}:{_field(item, 'id', int, required=True)}",
            name=_require_title(item),
            poster=self._build_poster_url(_field(item, "poster_path", str)),
            description=_field(item, "overview", str),
            genres=self._genre_names(_field(item, "genre_ids", list) or []),
            year=self._release_year(_field(item, "release_date", str)),
            rating=_rating(item),
            runtime=_field(item, "runtime", int),
        )

    def _to_detail(self, details: dict[str, Any]) -> MovieDetail:
        credits = _field(details, "credits", dict) or {}
        genres = _field(details, "genres", list) or []
        return MovieDetail(
            id=f"{self.id_prefix}:{_field(details, 'id', int, required=True)}",
            name=_require_title(details),
            poster=self._build_poster_url(_field(details, "poster_path", str)),
            description=_field(details, "overview", str),
            genres=[_field(_expect(genre, dict, "genres[]"), "name", str, required=True) for genre in genres],
            year=self._release_year(_field(details, "release_date", str)),
            rating=_rating(details),
            runtime=_field(details, "runtime", int),
            cast=self._extract_cast(credits),
            director=self._extract_director(credits),
            trailer=self._extract_trailer(_field(details, "videos", dict) or {}),
        )

    @staticmethod
    def _genre_names(genre_ids: Iterable[Any]) -> list[str]:
        return [MOVIE_GENRES.get(genre_id, str(genre_id)) for genre_id in genre_ids]

    @staticmethod
    def _release_year(raw: str | None) -> str | None:
        if not raw:
            return None
        return raw.split("-")[0]

    @staticmethod
    def _extract_cast(credits: dict[str, Any]) -> str:
        cast = _field(credits, "cast", list) or []
        names = [_field(_expect(person, dict, "credits.cast[]"), "name", str) for person in cast]
        return ", ".join(name for name in names if name)

    @staticmethod
    def _extract_director(credits: dict[str, Any]) -> str | None:
        for member in _field(credits, "crew", list) or []:
            _expect(member, dict, "credits.crew[]")
            name = _field(member, "name", str)
            if member.get("job") == "Director" and name:
                return name
        return None

    @staticmethod
    def _extract_trailer(videos: dict[str, Any]) -> str | None:
        for video in _field(videos, "results", list) or []:
            _expect(video, dict, "videos.results[]")
            if video.get("type") == "Trailer":
                return _field(video, "key", str)
        return None

    def _build_poster_url(self, path: str | None) -> str | None:
        if not path:
            return None
        return f"{self.image_base}{path}"


def _expect(value: Any, kind: type, where: str) -> Any:
    if not isinstance(value, kind) or isinstance(value, bool):
        raise TMDbResponseError(
            f"malformed payload: {where} is {type(value).__name__}, expected {kind.__name__}"
        )
    return value


def _field(container: dict[str, Any], key: str, kind: type, *, required: bool = False) -> Any:
    """Return ``container[key]`` if it has type ``kind``; a null or missing value is ``None``."""

    value = container.get(key)
    if value is None:
        if required:
            raise TMDbResponseError(f"malformed payload: missing field '{key}'")
        return None
    return _expect(value, kind, key)


def _rating(item: dict[str, Any]) -> float:
    value = item.get("vote_average")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TMDbResponseError(f"malformed payload: vote_average is {type(value).__name__}, expected number")
    return float(value)


def _require_title(item: dict[str, Any]) -> str:
    title = _field(item, "title", str)
    if not title:
        raise TMDbResponseError(f"malformed payload: TMDb item {item.get('id')!r} has no title")
    return title


def _describe(exc: Exception) -> str:
    if isinstance(exc, httpx.TimeoutException):
        return f"timed out ({type(exc).__name__})"
    if isinstance(exc, KeyError):
        return f"malformed payload: missing field {exc}"
    return str(exc) or type(exc).__name__
