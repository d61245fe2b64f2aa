"""Integration tests for the catalog pipeline.

Tests the flow: CatalogService -> cache -> adapter -> RequestQueue -> HTTP client
against simulated upstream sites.
"""

import asyncio

import httpx
import pytest

from mangahub.core.container import DependencyContainer
from mangahub.core.exceptions import (
    FetchError,
    ParameterValidationError,
    UnsupportedOperationError,
)
from mangahub.models.schemas import SearchResult

SEARCH_PAGE = """
<div class="manga_list-sbs">
  <div class="item">
    <a href="/one-piece-3" class="manga-poster">
      <img src="https://c.test/op.jpg" class="manga-poster-img" alt="One Piece">
    </a>
    <h3 class="manga-name"><a href="/one-piece-3">One Piece</a></h3>
  </div>
</div>
"""


class TestCatalogPipeline:
    """End-to-end behaviour through the container."""

    @pytest.mark.asyncio
    async def test_all_sources_registered(self, container):
        infos = container.catalog.list_sources()

        assert {info.name for info in infos} == {"MangaReader", "Hentai20", "OmegaScans"}
        assert {info.base_url for info in infos} == {
            "https://mangareader.test",
            "https://hentai20.test",
            "https://omegascans.test",
        }

    @pytest.mark.asyncio
    async def test_second_identical_request_is_served_from_cache(self, container, upstream):
        upstream.add("mangareader.test", "/search", text=SEARCH_PAGE)
        params = {"query": "one piece", "page": 1}

        cold = await container.catalog.execute("mangareader", "search", params)
        assert len(upstream.requests) == 1

        warm = await container.catalog.execute("mangareader", "search", params)

        assert len(upstream.requests) == 1
        assert cold.cached is False
        assert warm.cached is True
        assert [r.id for r in warm.data] == ["one-piece-3"]
        assert isinstance(warm.data[0], SearchResult)
        assert "mangareader:search:page:1|query:one piece" in container.cache.memory.keys()

    @pytest.mark.asyncio
    async def test_cache_is_per_source(self, container, upstream):
        upstream.add("mangareader.test", "/search", text=SEARCH_PAGE)
        upstream.add(
            "api.omegascans.test",
            "/query",
            json={"data": [{"title": "One Piece", "series_slug": "one-piece"}]},
        )

        a = await container.catalog.execute("mangareader", "search", {"query": "one piece"})
        b = await container.catalog.execute("omegascans", "search", {"query": "one piece"})

        assert a.cached is False
        assert b.cached is False
        assert b.data[0].id == "one-piece"

    @pytest.mark.asyncio
    async def test_concurrent_requests_are_serialized(self, container, upstream):
        upstream.add("mangareader.test", "/search", text=SEARCH_PAGE)
        upstream.add("hentai20.test", "/", text="<div class='listupd'></div>")

        await asyncio.gather(
            container.catalog.execute("mangareader", "search", {"query": "a"}),
            container.catalog.execute("hentai20", "search", {"query": "b"}),
            container.catalog.execute("mangareader", "search", {"query": "c"}),
        )

        hosts = [request.url.host for request in upstream.requests]
        assert hosts == ["mangareader.test", "hentai20.test", "mangareader.test"]
        assert container.queue.size == 0

    @pytest.mark.asyncio
    async def test_upstream_failure_after_retries(self, container, upstream):
        upstream.add("hentai20.test", "/manga/page/1/", status=500)

        with pytest.raises(FetchError) as exc_info:
            await container.catalog.execute("hentai20", "popular")

        assert exc_info.value.upstream_status == 500
        assert len(upstream.requests) == container.settings.retry_attempts

    @pytest.mark.asyncio
    async def test_validation_happens_before_fetch(self, container, upstream):
        with pytest.raises(ParameterValidationError):
            await container.catalog.execute("mangareader", "search", {"query": " "})

        with pytest.raises(UnsupportedOperationError):
            await container.catalog.execute("omegascans", "genres")

        assert upstream.requests == []


class TestContainerLifecycle:
    """Test container initialization and shutdown."""

    @pytest.mark.asyncio
    async def test_services_unavailable_before_initialize(self, settings):
        container = DependencyContainer(settings)

        with pytest.raises(RuntimeError):
            container.catalog

        assert container.is_initialized is False

    @pytest.mark.asyncio
    async def test_shutdown_resets_state(self, settings, upstream):
        container = DependencyContainer(settings, transport=httpx.MockTransport(upstream))
        await container.initialize()
        assert set(container.sources) == {"mangareader", "hentai20", "omegascans"}

        await container.shutdown()

        assert container.is_initialized is False
        with pytest.raises(RuntimeError):
            container.sources
