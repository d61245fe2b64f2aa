"""Base source interface for all upstream site adapters.

Every adapter extends BaseSource, implements the required operations and
declares which optional operations it offers through ``optional_capabilities``.
Callers ask ``supports()`` instead of probing for methods.
"""

import functools
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from mangahub.config.settings import Settings, get_settings
from mangahub.core.exceptions import MangaHubError, ScrapeError, UnsupportedOperationError
from mangahub.core.http_client import SourceHttpClient
from mangahub.models.schemas import (
    ChapterContent,
    ContentInfo,
    GenreRef,
    HomeData,
    SearchResult,
    SearchSuggestion,
    SourceInfo,
)

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class Capability(str, Enum):
    """Operations a source may offer."""

    SEARCH = "search"
    POPULAR = "popular"
    LATEST_UPDATES = "latest_updates"
    INFO = "info"
    CHAPTER = "chapter"

    SEARCH_SUGGESTIONS = "search_suggestions"
    POPULAR_TODAY = "popular_today"
    RECOMMENDATIONS = "recommendations"
    GENRES = "genres"
    GENRE = "genre"
    HOME = "home"


REQUIRED_CAPABILITIES = frozenset(
    {
        Capability.SEARCH,
        Capability.POPULAR,
        Capability.LATEST_UPDATES,
        Capability.INFO,
        Capability.CHAPTER,
    }
)


def scrape_operation(operation: str) -> Callable[[F], F]:
    """Decorator that turns unexpected failures into ScrapeError.

    Errors already in the MangaHub taxonomy (fetch failures, not-found, ...)
    propagate unchanged so callers keep their kind.

    Example:
        @scrape_operation("search")
        async def search(self, query: str, page: int = 1) -> list[SearchResult]:
            ...
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self: "BaseSource", *args: Any, **kwargs: Any) -> Any:
            try:
                return await func(self, *args, **kwargs)
            except MangaHubError:
                raise
            except Exception as e:
                logger.error(
                    "scrape_failed",
                    source=self.source_id,
                    operation=operation,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise ScrapeError(self.source_id, operation, str(e)) from e

        return wrapper  # type: ignore[return-value]

    return decorator


class BaseSource(ABC):
    """Abstract base class for all source adapters.

    Args:
        client: HTTP client bound to this source's site. The adapter owns it.
        settings: Application settings. Defaults to get_settings().
    """

    source_id: str = ""
    display_name: str = ""
    # Name of the Settings field holding the site root.
    base_url_setting: str = ""
    optional_capabilities: frozenset[Capability] = frozenset()
    # Source-specific listings beyond the shared capability set, by operation name.
    extra_operations: frozenset[str] = frozenset()

    def __init__(self, client: SourceHttpClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or get_settings()

    @property
    def base_url(self) -> str:
        return self.client.base_url

    @property
    def capabilities(self) -> frozenset[Capability]:
        return REQUIRED_CAPABILITIES | self.optional_capabilities

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def info(self) -> SourceInfo:
        """Static description used by the sources listing."""
        features = sorted(capability.value for capability in self.capabilities)
        return SourceInfo(
            name=self.display_name or self.source_id,
            base_url=self.base_url,
            features=features + sorted(self.extra_operations),
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    # -------------------------------------------------------------------------
    # Required operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def search(self, query: str, page: int = 1) -> list[SearchResult]: ...

    @abstractmethod
    async def get_popular(self, page: int = 1) -> list[SearchResult]: ...

    @abstractmethod
    async def get_latest_updates(self, page: int = 1) -> list[SearchResult]: ...

    @abstractmethod
    async def get_info(self, id: str) -> ContentInfo:
        """Full series detail. Raises ScrapeError when no title can be extracted."""
        ...

    @abstractmethod
    async def get_chapter(self, id: str) -> ChapterContent:
        """Reader pages for one chapter. Raises ScrapeError when no page is found."""
        ...

    # -------------------------------------------------------------------------
    # Optional operations
    # -------------------------------------------------------------------------

    async def search_suggestions(self, query: str) -> list[SearchSuggestion]:
        raise UnsupportedOperationError(self.source_id, Capability.SEARCH_SUGGESTIONS.value)

    async def get_popular_today(self, page: int = 1) -> list[SearchResult]:
        raise UnsupportedOperationError(self.source_id, Capability.POPULAR_TODAY.value)

    async def get_recommendations(self, page: int = 1) -> list[SearchResult]:
        raise UnsupportedOperationError(self.source_id, Capability.RECOMMENDATIONS.value)

    async def get_genres(self) -> list[GenreRef]:
        raise UnsupportedOperationError(self.source_id, Capability.GENRES.value)

    async def get_genre(self, genre: str, page: int = 1) -> list[SearchResult]:
        raise UnsupportedOperationError(self.source_id, Capability.GENRE.value)

    async def get_home(self) -> HomeData:
        raise UnsupportedOperationError(self.source_id, Capability.HOME.value)
