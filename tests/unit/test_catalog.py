"""
Unit tests for the catalog model, stream URLs and the indexer client.
"""

import httpx
import pytest

from chilltv.catalog import (
    DEFAULT_DURATION,
    CatalogClient,
    CatalogFetchError,
    CatalogItem,
    build_stream_url,
    search_items,
)
from tests.conftest import mock_transport


@pytest.mark.unit
class TestCatalogItem:
    """Tests for CatalogItem.from_api."""

    def test_from_api_record(self, sample_movie_records):
        item = CatalogItem.from_api(sample_movie_records[0])

        assert item.id == "603"
        assert item.title == "The Matrix"
        assert item.duration == 8160
        assert item.tmdb_id == 603
        assert item.torrent_hash == "abc123"
        assert item.resource_index == 0
        assert item.classification == "R"

    def test_zero_duration_uses_default(self, sample_movie_records):
        item = CatalogItem.from_api(sample_movie_records[2])

        assert item.duration == DEFAULT_DURATION

    @pytest.mark.parametrize("raw", [None, -30, "n/a"])
    def test_unusable_duration_uses_default(self, raw):
        item = CatalogItem.from_api({"id": "x", "title": "X", "movieDuration": raw})

        assert item.duration == DEFAULT_DURATION

    def test_custom_default_duration(self):
        item = CatalogItem.from_api({"id": "x", "title": "X"}, default_duration=5400)

        assert item.duration == 5400

    def test_plain_duration_key(self):
        item = CatalogItem.from_api({"id": "x", "title": "X", "duration": 95})

        assert item.duration == 95

    def test_explicit_id_wins_over_tmdb_id(self):
        item = CatalogItem.from_api({"id": "m-1", "tmdb_id": 7, "title": "X"})

        assert item.id == "m-1"
        assert item.tmdb_id == 7

    def test_missing_title(self):
        item = CatalogItem.from_api({"id": "x"})

        assert item.title == "Untitled"

    def test_to_dict(self):
        item = CatalogItem(id="a", title="Alpha", duration=60)
        data = item.to_dict()

        assert data["id"] == "a"
        assert data["duration"] == 60
        assert data["torrent_hash"] is None


@pytest.mark.unit
class TestStreamUrl:
    """Tests for build_stream_url."""

    def test_builds_url(self):
        item = CatalogItem(id="a", title="A", torrent_hash="abc", resource_index=3)

        assert build_stream_url(item, "https://p2media.fly.dev/") == (
            "https://p2media.fly.dev/stream/abc/3"
        )

    def test_resource_index_zero_is_streamable(self):
        item = CatalogItem(id="a", title="A", torrent_hash="abc", resource_index=0)

        assert build_stream_url(item, "https://host") == "https://host/stream/abc/0"

    def test_missing_metadata(self):
        assert build_stream_url(CatalogItem(id="a", title="A"), "https://host") is None
        assert build_stream_url(
            CatalogItem(id="a", title="A", torrent_hash="abc"), "https://host"
        ) is None


@pytest.mark.unit
class TestCatalogClient:
    """Tests for CatalogClient against a mocked transport."""

    def test_url(self):
        client = CatalogClient("https://indexer.test/", endpoint="/api/movies")

        assert client.url == "https://indexer.test/api/movies"

    async def test_fetch_items_keeps_order(self, catalog_client):
        items = await catalog_client.fetch_items()

        assert [item.title for item in items] == ["The Matrix", "Inception", "Spirited Away"]
        assert items[2].duration == DEFAULT_DURATION

    async def test_requests_listing_endpoint(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=[])

        client = CatalogClient("https://indexer.test", transport=httpx.MockTransport(handler))

        assert await client.fetch_items() == []
        assert seen == ["https://indexer.test/api/movies"]

    async def test_http_error_status(self):
        client = CatalogClient(
            "https://indexer.test",
            transport=mock_transport({"detail": "indexer down"}, status_code=500),
        )

        with pytest.raises(CatalogFetchError, match="indexer down"):
            await client.fetch_items()

    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = CatalogClient("https://indexer.test", transport=httpx.MockTransport(handler))

        with pytest.raises(CatalogFetchError):
            await client.fetch_items()

    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        client = CatalogClient("https://indexer.test", transport=httpx.MockTransport(handler))

        with pytest.raises(CatalogFetchError, match="Timeout"):
            await client.fetch_items()

    async def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>oops</html>")

        client = CatalogClient("https://indexer.test", transport=httpx.MockTransport(handler))

        with pytest.raises(CatalogFetchError, match="not valid JSON"):
            await client.fetch_items()

    async def test_payload_not_a_list(self):
        client = CatalogClient("https://indexer.test", transport=mock_transport({"movies": []}))

        with pytest.raises(CatalogFetchError, match="Expected a list"):
            await client.fetch_items()

    async def test_malformed_record(self):
        client = CatalogClient("https://indexer.test", transport=mock_transport([{"id": 1}, "x"]))

        with pytest.raises(CatalogFetchError, match="Malformed"):
            await client.fetch_items()

    async def test_malformed_field_value(self):
        records = [{"title": "The Matrix", "tmdb_id": "tt0133093", "movieDuration": 8160}]
        client = CatalogClient("https://indexer.test", transport=mock_transport(records))

        with pytest.raises(CatalogFetchError, match="Malformed"):
            await client.fetch_items()

    async def test_get_by_tmdb_id(self, catalog_client):
        item = await catalog_client.get_by_tmdb_id(27205)

        assert item is not None
        assert item.title == "Inception"
        assert await catalog_client.get_by_tmdb_id(1) is None

    async def test_search_by_title(self, catalog_client):
        results = await catalog_client.search_by_title("in")

        assert [item.title for item in results] == ["Inception"]


@pytest.mark.unit
class TestSearchItems:
    """Tests for search_items."""

    def test_case_insensitive_substring(self, three_items):
        assert [i.id for i in search_items(three_items, "AR")] == ["c"]
        assert [i.id for i in search_items(three_items, "a")] == ["a", "b", "c"]

    def test_no_match(self, three_items):
        assert search_items(three_items, "zulu") == []
