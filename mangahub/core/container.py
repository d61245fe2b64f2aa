"""
Dependency Injection Container for MangaHub.

Owns the shared request queue and cache, one HTTP client plus adapter per
registered source, and the catalog service built on top of them. Several
containers may coexist (tests build their own); nothing here is a module
global.

Usage:
    # At application startup
    container = DependencyContainer()
    await container.initialize()

    result = await container.catalog.execute("mangareader", "popular", {"page": 1})

    # At shutdown
    await container.shutdown()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import httpx
import structlog

from mangahub.config.settings import Settings, get_settings
from mangahub.core.cache import TieredCache, create_cache
from mangahub.core.exceptions import InitializationError
from mangahub.core.http_client import SourceHttpClient
from mangahub.core.request_queue import RequestQueue

if TYPE_CHECKING:
    from mangahub.services.catalog import CatalogService
    from mangahub.sources.base import BaseSource

logger = structlog.get_logger(__name__)


class DependencyContainer:
    """
    Central container for all service dependencies.

    Example:
        container = DependencyContainer()
        await container.initialize()

        catalog = container.catalog
        mangareader = container.sources["mangareader"]

        await container.shutdown()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the container.

        Args:
            settings: Application settings. Defaults to get_settings().
            transport: httpx transport shared by every source client.
                Tests pass ``httpx.MockTransport``.
        """
        self._settings = settings or get_settings()
        self._transport = transport
        self._queue: RequestQueue | None = None
        self._cache: TieredCache | None = None
        self._sources: dict[str, BaseSource] = {}
        self._catalog: CatalogService | None = None
        self._initialized = False

        logger.info("dependency_container_created")

    @property
    def settings(self) -> Settings:
        """Get application settings."""
        return self._settings

    @property
    def queue(self) -> RequestQueue:
        return self._require(self._queue, "queue")

    @property
    def cache(self) -> TieredCache:
        return self._require(self._cache, "cache")

    @property
    def catalog(self) -> "CatalogService":
        return self._require(self._catalog, "catalog")

    @property
    def sources(self) -> dict[str, "BaseSource"]:
        if not self._initialized:
            raise RuntimeError("Container not initialized. Call initialize() first.")
        return self._sources

    def _require(self, service, name: str):
        if service is None:
            raise RuntimeError(f"Container not initialized: '{name}' unavailable. Call initialize() first.")
        return service

    async def initialize(self) -> None:
        """
        Build the queue, cache, adapters and catalog.

        Raises:
            InitializationError: If any component fails to initialize.
        """
        if self._initialized:
            logger.warning("container_already_initialized")
            return

        logger.info("container_initializing")

        try:
            # Importing the package registers every adapter.
            from mangahub.services.catalog import CatalogService
            from mangahub.sources import get_source_class, list_sources

            self._queue = RequestQueue(delay=self._settings.queue_delay_seconds)
            self._cache = await create_cache(self._settings)

            for source_id in list_sources():
                source_class = get_source_class(source_id)
                client = SourceHttpClient(
                    source_id,
                    getattr(self._settings, source_class.base_url_setting),
                    self._queue,
                    self._settings,
                    transport=self._transport,
                )
                self._sources[source_id] = source_class(client, self._settings)
                logger.info("source_registered", source=source_id, base_url=client.base_url)

            self._catalog = CatalogService(self._sources, self._cache, self._settings)

            self._initialized = True
            logger.info("container_initialized", sources=list(self._sources))

        except InitializationError:
            raise
        except Exception as e:
            logger.error(
                "container_initialization_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InitializationError(
                "DependencyContainer",
                f"Failed to initialize dependencies: {e}",
            )

    async def shutdown(self) -> None:
        """
        Shutdown all services gracefully.

        Call this at application shutdown.
        """
        logger.info("container_shutting_down")

        for source_id, source in self._sources.items():
            try:
                await source.aclose()
            except Exception as e:
                logger.error("source_close_error", source=source_id, error=str(e))

        if self._queue is not None:
            await self._queue.aclose()

        if self._cache is not None:
            await self._cache.close()

        self._sources = {}
        self._catalog = None
        self._initialized = False
        logger.info("container_shutdown_complete")

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized
