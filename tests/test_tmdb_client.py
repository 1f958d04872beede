import httpx
import pytest

from catalog_addon.services.models import CatalogFilters
from catalog_addon.services.tmdb import TMDbClient

MATRIX_RESULT = {
    "id": 603,
    "title": "The Matrix",
    "poster_path": "/m.jpg",
    "overview": "A hacker learns the truth.",
    "genre_ids": [28],
    "release_date": "1999-03-31",
    "vote_average": 8.7,
    "runtime": 136,
}

MATRIX_DETAILS = {
    "id": 603,
    "title": "The Matrix",
    "poster_path": "/m.jpg",
    "overview": "A hacker learns the truth.",
    "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
    "release_date": "1999-03-31",
    "vote_average": 8.7,
    "runtime": 136,
    "credits": {
        "cast": [{"name": "Keanu Reeves"}, {"name": "Carrie-Anne Moss"}],
        "crew": [
            {"job": "Writer", "name": "Lilly Wachowski"},
            {"job": "Director", "name": "Lana Wachowski"},
        ],
    },
    "videos": {
        "results": [
            {"type": "Teaser", "key": "teaser-key"},
            {"type": "Trailer", "key": "vKQi3bBA1y8"},
        ]
    },
}


def _client(handler) -> TMDbClient:
    return TMDbClient(api_key="test-key", transport=httpx.MockTransport(handler))


@pytest.fixture
def filters():
    return CatalogFilters(year=2020, genre="28", min_rating=7, min_runtime=90, language="en")


@pytest.mark.asyncio
async def test_fetch_list_maps_discover_results(filters):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"page": 1, "results": [MATRIX_RESULT]})

    result = await _client(handler).fetch_list(filters)

    assert result.ok
    assert [movie.as_meta() for movie in result.payload] == [
        {
            "id": "tmdb:603",
            "type": "movie",
            "name": "The Matrix",
            "poster": "https://image.tmdb.org/t/p/w500/m.jpg",
            "description": "A hacker learns the truth.",
            "genres": ["Action"],
            "year": "1999",
            "rating": 8.7,
            "runtime": 136,
        }
    ]
    assert len(seen) == 1
    assert seen[0].url.path == "/3/discover/movie"


@pytest.mark.asyncio
async def test_fetch_list_sends_filters_and_fixed_query(filters):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(request.url.params)
        return httpx.Response(200, json={"results": []})

    result = await _client(handler).fetch_list(filters)

    assert result.ok
    assert result.payload == []
    assert captured == {
        "api_key": "test-key",
        "language": "en-US",
        "sort_by": "popularity.desc",
        "include_adult": "false",
        "include_video": "false",
        "page": "1",
        "primary_release_year": "2020",
        "with_genres": "28",
        "vote_average.gte": "7",
        "with_runtime.gte": "90",
        "with_original_language": "en",
    }


@pytest.mark.asyncio
async def test_fetch_list_skips_unset_filters():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(request.url.params)
        return httpx.Response(200, json={"results": []})

    await _client(handler).fetch_list(CatalogFilters(year=1999))

    assert captured["primary_release_year"] == "1999"
    assert "with_genres" not in captured
    assert "vote_average.gte" not in captured
    assert "with_original_language" not in captured


@pytest.mark.asyncio
async def test_fetch_list_server_error_is_failure(filters, caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"status_message": "down"})

    result = await _client(handler).fetch_list(filters)

    assert not result.ok
    assert result.payload is None
    assert "Error fetching movies" in caplog.text


@pytest.mark.asyncio
async def test_fetch_list_timeout_is_failure(filters):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    result = await _client(handler).fetch_list(filters)

    assert not result.ok
    assert "timed out" in result.error


@pytest.mark.asyncio
async def test_fetch_list_malformed_payload_is_failure(filters):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": [{"id": 1, "release_date": "2020-01-01"}]})

    result = await _client(handler).fetch_list(filters)

    assert not result.ok


@pytest.mark.asyncio
async def test_fetch_list_non_json_body_is_failure(filters):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    result = await _client(handler).fetch_list(filters)

    assert not result.ok


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_request(filters):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"results": []})

    client = TMDbClient(api_key="", transport=httpx.MockTransport(handler))
    client.api_key = None

    result = await client.fetch_list(filters)

    assert not result.ok
    assert "TMDB_API_KEY" in result.error
    assert calls == []


@pytest.mark.asyncio
async def test_fetch_detail_maps_credits_and_trailer():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["params"] = dict(request.url.params)
        return httpx.Response(200, json=MATRIX_DETAILS)

    result = await _client(handler).fetch_detail("603")

    assert result.ok
    assert captured["path"] == "/3/movie/603"
    assert captured["params"]["append_to_response"] == "credits,videos"
    assert captured["params"]["language"] == "en-US"
    detail = result.payload
    assert detail.id == "tmdb:603"
    assert detail.genres == ["Action", "Science Fiction"]
    assert detail.cast == "Keanu Reeves, Carrie-Anne Moss"
    assert detail.director == "Lana Wachowski"
    assert detail.trailer == "vKQi3bBA1y8"


@pytest.mark.asyncio
async def test_fetch_detail_without_director_or_trailer():
    payload = dict(MATRIX_DETAILS)
    payload["credits"] = {"cast": [], "crew": [{"job": "Writer", "name": "A"}]}
    payload["videos"] = {"results": [{"type": "Clip", "key": "clip"}]}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    result = await _client(handler).fetch_detail("603")

    assert result.ok
    assert result.payload.director is None
    assert result.payload.trailer is None
    assert result.payload.cast == ""
    assert "director" not in result.payload.as_meta()


@pytest.mark.asyncio
async def test_fetch_detail_without_credits_section():
    payload = {key: value for key, value in MATRIX_DETAILS.items() if key not in {"credits", "videos"}}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    result = await _client(handler).fetch_detail("603")

    assert result.ok
    assert result.payload.director is None


@pytest.mark.asyncio
async def test_fetch_detail_not_found_is_failure(caplog):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"status_message": "not found"})

    result = await _client(handler).fetch_detail("999999")

    assert not result.ok
    assert "999999" in caplog.text


@pytest.mark.asyncio
async def test_fetch_detail_connection_error_is_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await _client(handler).fetch_detail("603")

    assert not result.ok
    assert result.payload is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"release_date": 1999},
        {"id": "603"},
        {"title": ["The Matrix"]},
        {"vote_average": "8.7"},
        {"vote_average": None},
        {"genre_ids": "28"},
        {"poster_path": 42},
    ],
)
async def test_fetch_list_wrong_field_types_are_failure(filters, overrides):
    item = {**MATRIX_RESULT, **overrides}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"results": [item]})

    result = await _client(handler).fetch_list(filters)

    assert not result.ok
    assert result.payload is None
    assert "malformed payload" in result.error


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [{"results": "none"}, {"results": ["oops"]}, {"results": None}, {"page": 1}])
async def test_fetch_list_wrong_results_shape_is_failure(filters, body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    result = await _client(handler).fetch_list(filters)

    assert not result.ok


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"credits": ["oops"]},
        {"videos": "oops"},
        {"release_date": 1999},
        {"genres": [28]},
        {"credits": {"cast": "Keanu Reeves", "crew": []}},
        {"credits": {"cast": [], "crew": ["Director"]}},
        {"credits": {"cast": ["Keanu Reeves"], "crew": []}},
        {"videos": {"results": ["Trailer"]}},
        {"videos": {"results": {"type": "Trailer"}}},
    ],
)
async def test_fetch_detail_wrong_field_types_are_failure(overrides, caplog):
    payload = {**MATRIX_DETAILS, **overrides}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    result = await _client(handler).fetch_detail("603")

    assert not result.ok
    assert result.payload is None
    assert "malformed payload" in result.error
    assert "Error fetching movie details for 603" in caplog.text


@pytest.mark.asyncio
async def test_fetch_detail_null_sections_are_absent():
    payload = {**MATRIX_DETAILS, "credits": None, "videos": None, "poster_path": None, "release_date": None}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=payload)

    result = await _client(handler).fetch_detail("603")

    assert result.ok
    assert result.payload.cast == ""
    assert result.payload.director is None
    assert result.payload.trailer is None
    assert result.payload.poster is None
    assert result.payload.year is None
