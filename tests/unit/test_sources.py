"""Unit tests for the source contract and registry."""

import pytest
from unittest.mock import MagicMock

from mangahub.core.exceptions import (
    ParameterValidationError,
    ScrapeError,
    SourceNotFoundError,
    UnsupportedOperationError,
)
from mangahub.sources import (
    REQUIRED_CAPABILITIES,
    BaseSource,
    Capability,
    Hentai20Source,
    MangaReaderSource,
    OmegaScansSource,
    create_source,
    get_source_class,
    list_sources,
    scrape_operation,
)


class MinimalSource(BaseSource):
    """Implements only the required operations."""

    source_id = "minimal"
    extra_operations = frozenset({"shelf"})

    @scrape_operation("search")
    async def search(self, query, page=1):
        raise KeyError("result-list")

    @scrape_operation("popular")
    async def get_popular(self, page=1):
        raise SourceNotFoundError(self.source_id, "Content not found")

    async def get_latest_updates(self, page=1):
        return []

    async def get_info(self, id):
        raise NotImplementedError

    async def get_chapter(self, id):
        raise NotImplementedError


@pytest.fixture
def client():
    client = MagicMock()
    client.base_url = "https://minimal.test"
    return client


class TestCapabilities:
    """Test capability declarations."""

    def test_required_capabilities_always_present(self, client, settings):
        source = MinimalSource(client, settings)

        assert source.capabilities == REQUIRED_CAPABILITIES
        assert source.supports(Capability.SEARCH)
        assert not source.supports(Capability.HOME)

    @pytest.mark.asyncio
    async def test_missing_optional_operation_is_unsupported(self, client, settings):
        source = MinimalSource(client, settings)

        with pytest.raises(UnsupportedOperationError) as exc_info:
            await source.get_home()

        assert exc_info.value.kind == "unsupported_operation"
        assert exc_info.value.operation == "home"

    def test_info_lists_features(self, client, settings):
        source = MinimalSource(client, settings)

        info = source.info()

        assert info.name == "minimal"
        assert info.base_url == "https://minimal.test"
        assert info.is_active is True
        assert info.features == sorted(c.value for c in REQUIRED_CAPABILITIES) + ["shelf"]

    @pytest.mark.parametrize(
        "source_class,optional",
        [
            (MangaReaderSource, set(Capability) - REQUIRED_CAPABILITIES),
            (Hentai20Source, {Capability.GENRES, Capability.GENRE, Capability.HOME}),
            (OmegaScansSource, {Capability.HOME}),
        ],
    )
    def test_declared_capabilities(self, source_class, optional, client, settings):
        source = source_class(client, settings)

        assert source.capabilities == REQUIRED_CAPABILITIES | optional

    @pytest.mark.parametrize("source_class", [MangaReaderSource, Hentai20Source, OmegaScansSource])
    def test_extra_operations_are_implemented(self, source_class):
        for operation in source_class.extra_operations:
            assert callable(getattr(source_class, f"get_{operation}"))

    @pytest.mark.parametrize("source_class", [MangaReaderSource, Hentai20Source, OmegaScansSource])
    def test_base_url_setting_exists(self, source_class, settings):
        assert getattr(settings, source_class.base_url_setting).startswith("https://")


class TestScrapeOperation:
    """Test failure wrapping."""

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_scrape_error(self, client, settings):
        source = MinimalSource(client, settings)

        with pytest.raises(ScrapeError) as exc_info:
            await source.search("x")

        error = exc_info.value
        assert error.kind == "scrape_failure"
        assert error.operation == "search"
        assert error.source == "minimal"
        assert isinstance(error.__cause__, KeyError)

    @pytest.mark.asyncio
    async def test_taxonomy_errors_pass_through(self, client, settings):
        source = MinimalSource(client, settings)

        with pytest.raises(SourceNotFoundError):
            await source.get_popular()

    def test_preserves_function_name(self):
        assert MinimalSource.search.__name__ == "search"


class TestRegistry:
    """Test adapter registration and lookup."""

    def test_builtin_sources_registered(self):
        assert {"mangareader", "hentai20", "omegascans"} <= set(list_sources())

    def test_registered_class_knows_its_id(self):
        assert get_source_class("hentai20") is Hentai20Source
        assert Hentai20Source.source_id == "hentai20"

    def test_unknown_source(self):
        with pytest.raises(ParameterValidationError) as exc_info:
            get_source_class("nope")

        assert exc_info.value.parameter == "source"

    def test_create_source(self, client, settings):
        source = create_source("omegascans", client, settings)

        assert isinstance(source, OmegaScansSource)
        assert source.client is client
