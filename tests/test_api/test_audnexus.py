"""Tests for api/audnexus.py -- author and work lookups with mocked HTTP."""

import httpx
import pytest

from audiobook_matcher.api.audnexus import AudnexusClient
from audiobook_matcher.errors import TransientUpstreamError
from audiobook_matcher.models import CandidateSource, MatchMethod

from tests.conftest import mock_client

BOOK = {
    "asin": "B0TEST01",
    "title": "Fishing",
    "authors": [{"asin": "A1", "name": "A. Author"}],
    "narrators": [{"name": "Reader One"}],
    "genres": [{"asin": "G1", "name": "Fantasy", "type": "genre"}],
    "runtimeLengthMin": 605,
    "publisherName": "Podium",
    "description": "<p>A book about fishing.</p>",
    "summary": "Fish.",
    "copyright": 2023,
    "rating": 4.6,
    "releaseDate": "2023-05-01T00:00:00.000Z",
    "isbn": "9781234567890",
    "language": "english",
    "isAdult": False,
    "formatType": "unabridged",
    "image": "https://example.com/cover.jpg",
}

CHAPTERS = {
    "asin": "B0TEST01",
    "runtimeLengthMs": 36300000,
    "chapters": [{"title": "One", "lengthMs": 1000}, {"title": "Two", "lengthMs": 2000}],
}


def _routes(routes: dict[str, httpx.Response], seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        for path, response in routes.items():
            if request.url.path == path:
                return response
        return httpx.Response(404, json={"error": "not found"})

    return handler


class TestGetWorkDetail:
    @pytest.mark.asyncio
    async def test_full_record(self, config):
        seen = []
        handler = _routes(
            {
                "/books/B0TEST01": httpx.Response(200, json=BOOK),
                "/books/B0TEST01/chapters": httpx.Response(200, json=CHAPTERS),
            },
            seen,
        )
        async with mock_client(handler) as client:
            record = await AudnexusClient(client, config).get_work_detail("B0TEST01")

        assert record.has_match is True
        assert record.external_id == "B0TEST01"
        assert record.match_method == MatchMethod.DIRECT_LOOKUP
        assert record.narrators == ("Reader One",)
        assert record.authors == ("A. Author",)
        assert record.genres == ("Fantasy",)
        assert record.total_duration_minutes == 605
        assert record.total_duration_ms == 605 * 60_000
        assert record.total_duration_hours == 10.1
        assert record.chapter_count == 2
        assert record.publisher == "Podium"
        assert record.copyright == "2023"
        assert record.rating == "4.6"
        assert all(r.url.params["region"] == "us" for r in seen)

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self, config):
        async with mock_client(_routes({})) as client:
            assert await AudnexusClient(client, config).get_work_detail("NOPE") is None

    @pytest.mark.asyncio
    async def test_server_error_raises_transient(self, config):
        handler = _routes({"/books/B0TEST01": httpx.Response(500)})
        async with mock_client(handler) as client:
            with pytest.raises(TransientUpstreamError) as exc_info:
                await AudnexusClient(client, config).get_work_detail("B0TEST01")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_timeout_raises_transient(self, config):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(TransientUpstreamError):
                await AudnexusClient(client, config).get_work_detail("B0TEST01")

    @pytest.mark.asyncio
    async def test_chapter_failure_leaves_duration_from_book(self, config):
        handler = _routes(
            {
                "/books/B0TEST01": httpx.Response(200, json=BOOK),
                "/books/B0TEST01/chapters": httpx.Response(503),
            }
        )
        async with mock_client(handler) as client:
            record = await AudnexusClient(client, config).get_work_detail("B0TEST01")

        assert record.has_match is True
        assert record.chapter_count is None
        assert record.total_duration_minutes == 605

    @pytest.mark.asyncio
    async def test_missing_asin_in_body_returns_none(self, config):
        handler = _routes({"/books/B0TEST01": httpx.Response(200, json={"title": "x"})})
        async with mock_client(handler) as client:
            assert await AudnexusClient(client, config).get_work_detail("B0TEST01") is None


class TestFindAuthor:
    @pytest.mark.asyncio
    async def test_picks_exact_normalized_match(self, config):
        seen = []
        handler = _routes(
            {
                "/authors": httpx.Response(
                    200,
                    json=[
                        {"asin": "X1", "name": "Joanne Rowling Fan"},
                        {"asin": "X2", "name": "J. K. Rowling"},
                    ],
                )
            },
            seen,
        )
        async with mock_client(handler) as client:
            profile = await AudnexusClient(client, config).find_author("J.K. Rowling")

        assert profile.external_id == "X2"
        assert seen[0].url.params["name"] == "J.K. Rowling"

    @pytest.mark.asyncio
    async def test_empty_result_is_none(self, config):
        handler = _routes({"/authors": httpx.Response(200, json=[])})
        async with mock_client(handler) as client:
            assert await AudnexusClient(client, config).find_author("Nobody") is None

    @pytest.mark.asyncio
    async def test_network_error_raises(self, config):
        def handler(request):
            raise httpx.ConnectError("offline", request=request)

        async with mock_client(handler) as client:
            with pytest.raises(TransientUpstreamError):
                await AudnexusClient(client, config).find_author("Anyone")


class TestGetAuthorDetail:
    @pytest.mark.asyncio
    async def test_profile_with_books(self, config):
        handler = _routes(
            {
                "/authors/A1": httpx.Response(
                    200,
                    json={
                        "asin": "A1",
                        "name": "A. Author",
                        "description": "Writes things.",
                        "genres": [{"name": "Fantasy"}],
                        "books": [{"asin": "B1", "title": "Fishing"}],
                    },
                )
            }
        )
        async with mock_client(handler) as client:
            profile = await AudnexusClient(client, config).get_author_detail("A1")

        assert profile.name == "A. Author"
        assert profile.genres == ("Fantasy",)
        assert len(profile.known_works) == 1
        work = profile.known_works[0]
        assert work.external_id == "B1"
        assert work.origin_source == CandidateSource.AUTHOR_CATALOG

    @pytest.mark.asyncio
    async def test_profile_without_books(self, config):
        handler = _routes(
            {"/authors/A1": httpx.Response(200, json={"asin": "A1", "name": "A. Author"})}
        )
        async with mock_client(handler) as client:
            profile = await AudnexusClient(client, config).get_author_detail("A1")

        assert profile.known_works == ()
