"""Shared dataclasses for service layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Hashable, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CatalogFilters:
    """Discover filters for one catalog request."""

    year: int
    genre: str | None = None
    min_rating: float | None = None
    min_runtime: int | None = None
    language: str | None = None

    def cache_key(self) -> tuple[Hashable, ...]:
        return (
            "discover",
            self.year,
            self.genre,
            self.min_rating,
            self.min_runtime,
            self.language,
        )


def detail_cache_key(movie_id: str) -> tuple[Hashable, ...]:
    return ("detail", movie_id)


@dataclass(slots=True)
class MovieSummary:
    """Catalog item in the addon's meta-preview shape."""

    id: str
    name: str
    rating: float
    type: str = "movie"
    poster: str | None = None
    description: str | None = None
    genres: list[str] = field(default_factory=list)
    year: str | None = None
    runtime: int | None = None

    def as_meta(self) -> dict[str, Any]:
        meta: dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "poster": self.poster,
            "description": self.description,
            "genres": list(self.genres),
            "year": self.year,
            "rating": self.rating,
            "runtime": self.runtime,
        }
        return {key: value for key, value in meta.items() if value is not None}


@dataclass(slots=True)
class MovieDetail(MovieSummary):
    """Full meta record with credits and trailer."""

    cast: str = ""
    director: str | None = None
    trailer: str | None = None

    def as_meta(self) -> dict[str, Any]:
        meta = MovieSummary.as_meta(self)
        meta["cast"] = self.cast
        if self.director is not None:
            meta["director"] = self.director
        if self.trailer is not None:
            meta["trailer"] = self.trailer
        return meta


@dataclass(frozen=True, slots=True)
class CacheEntry:
    payload: Any
    created_at: float


@dataclass(frozen=True, slots=True)
class FetchResult(Generic[T]):
    """Outcome of one upstream call: a payload or the reason it failed."""

    payload: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, payload: T) -> FetchResult[T]:
        return cls(payload=payload)

    @classmethod
    def failure(cls, reason: str) -> FetchResult[T]:
        return cls(error=reason)
