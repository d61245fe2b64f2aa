"""Catalog service: the single entry point callers use to read from sources.

A request is ``(source_id, operation, params)``. The service validates it,
answers from the cache when it can and otherwise runs the adapter operation,
caching the normalized result with a TTL that depends on the kind of data.

Example:
    catalog = CatalogService(sources, cache, settings)
    result = await catalog.execute("mangareader", "search", {"query": "one piece", "page": 1})
    result.cached       # False on the first call, True afterwards
    result.pagination   # PaginationInfo(current_page=1, has_next_page=...)
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

import structlog
from pydantic import ValidationError

from mangahub.config.settings import Settings, get_settings
from mangahub.core.cache import TieredCache, generate_cache_key
from mangahub.core.exceptions import ParameterValidationError, UnsupportedOperationError
from mangahub.models.schemas import (
    BaseRecord,
    ChapterContent,
    Character,
    ContentInfo,
    GenreRef,
    HomeData,
    PaginationInfo,
    SearchResult,
    SearchSuggestion,
    SourceInfo,
)
from mangahub.sources.base import BaseSource, Capability

logger = structlog.get_logger(__name__)


# =============================================================================
# Operation table
# =============================================================================


@dataclass(frozen=True)
class OperationSpec:
    """How one catalog operation maps onto an adapter method.

    Attributes:
        method: Adapter coroutine to call.
        params: Required string parameters, passed by name.
        paged: Whether the operation takes a ``page`` parameter.
        capability: Capability the source must declare. None for
            source-specific operations, which are checked against
            ``BaseSource.extra_operations``.
        ttl: Cache TTL category: "list", "info", "genres" or "home".
        model: Record type, used to restore cached values.
        many: Whether the result is a list of records.
    """

    method: str
    params: tuple[str, ...] = ()
    paged: bool = False
    capability: Optional[Capability] = None
    ttl: str = "list"
    model: type[BaseRecord] = SearchResult
    many: bool = True


def _listing(method: str, capability: Optional[Capability] = None, *params: str) -> OperationSpec:
    return OperationSpec(method=method, params=params, paged=True, capability=capability)


OPERATIONS: dict[str, OperationSpec] = {
    "search": _listing("search", Capability.SEARCH, "query"),
    "search_suggestions": OperationSpec(
        "search_suggestions",
        params=("query",),
        capability=Capability.SEARCH_SUGGESTIONS,
        model=SearchSuggestion,
    ),
    "popular": _listing("get_popular", Capability.POPULAR),
    "popular_today": _listing("get_popular_today", Capability.POPULAR_TODAY),
    "latest_updates": _listing("get_latest_updates", Capability.LATEST_UPDATES),
    "recommendations": _listing("get_recommendations", Capability.RECOMMENDATIONS),
    "info": OperationSpec(
        "get_info", params=("id",), capability=Capability.INFO, ttl="info", model=ContentInfo, many=False
    ),
    "chapter": OperationSpec(
        "get_chapter",
        params=("id",),
        capability=Capability.CHAPTER,
        ttl="info",
        model=ChapterContent,
        many=False,
    ),
    "genres": OperationSpec("get_genres", capability=Capability.GENRES, ttl="genres", model=GenreRef),
    "genre": _listing("get_genre", Capability.GENRE, "genre"),
    "home": OperationSpec("get_home", capability=Capability.HOME, ttl="home", model=HomeData, many=False),
    # Source-specific listings
    "popular_week": _listing("get_popular_week"),
    "popular_month": _listing("get_popular_month"),
    "new_release": _listing("get_new_release"),
    "trending": _listing("get_trending"),
    "completed": _listing("get_completed"),
    "by_type": _listing("get_by_type", None, "type"),
    "authors_manga": _listing("get_authors_manga", None, "author"),
    "related": OperationSpec("get_related", params=("id",), ttl="info"),
    "you_may_also_like": OperationSpec("get_you_may_also_like", params=("id",), ttl="info"),
    "characters": OperationSpec("get_characters", params=("id",), ttl="info", model=Character),
    "manga_list": _listing("get_manga_list"),
    "manhwa_update": _listing("get_manhwa_update"),
    "webtoon_hot": _listing("get_webtoon_hot"),
    "tumanhwas_espanol": _listing("get_tumanhwas_espanol"),
    "china_toptoon": _listing("get_china_toptoon"),
    "porn_comic": _listing("get_porn_comic"),
    "manga_for_free": _listing("get_manga_for_free"),
    "latest_comic_updates": _listing("get_latest_comic_updates"),
    "latest_novel_updates": _listing("get_latest_novel_updates"),
    "comic": _listing("get_comic"),
    "novel": _listing("get_novel"),
}


@dataclass
class CatalogResult:
    """Outcome of one catalog request."""

    source: str
    operation: str
    data: Any
    cached: bool
    pagination: Optional[PaginationInfo] = None


# =============================================================================
# Catalog Service
# =============================================================================


class CatalogService:
    """
    Read-through cache in front of the source adapters.

    Args:
        sources: Adapters by source id.
        cache: Shared two-tier cache.
        settings: Application settings. Defaults to get_settings().
    """

    def __init__(
        self,
        sources: Mapping[str, BaseSource],
        cache: TieredCache,
        settings: Optional[Settings] = None,
    ):
        self._sources = dict(sources)
        self._cache = cache
        self._settings = settings or get_settings()
        self._ttls = {
            "list": self._settings.cache_ttl_seconds,
            "info": self._settings.info_cache_ttl_seconds,
            "genres": self._settings.genres_cache_ttl_seconds,
            "home": self._settings.home_cache_ttl_seconds,
        }

    def list_sources(self) -> list[SourceInfo]:
        return [source.info() for source in self._sources.values()]

    def get_source(self, source_id: str) -> BaseSource:
        source = self._sources.get(source_id)
        if source is None:
            raise ParameterValidationError(f"Unknown source: {source_id}", parameter="source")
        return source

    async def execute(
        self,
        source_id: str,
        operation: str,
        params: Optional[Mapping[str, Any]] = None,
        bypass_cache: bool = False,
    ) -> CatalogResult:
        """Run one operation against one source.

        Raises:
            ParameterValidationError: Unknown source or operation, or bad params.
            UnsupportedOperationError: The source does not offer the operation.
            MangaHubError: Any fetch or extraction failure from the adapter.
        """
        source = self.get_source(source_id)
        spec = OPERATIONS.get(operation)
        if spec is None:
            raise ParameterValidationError(f"Unknown operation: {operation}", parameter="operation")

        self._check_supported(source, operation, spec)
        arguments = self._validate(spec, params or {})
        key = generate_cache_key(source_id, operation, arguments)

        if not bypass_cache:
            cached = await self._cache.get(key)
            data = await self._restore(key, spec, cached) if cached is not None else None
            if data is not None:
                logger.debug("catalog_cache_hit", key=key)
                return CatalogResult(
                    source=source_id,
                    operation=operation,
                    data=data,
                    cached=True,
                    pagination=self._pagination(spec, arguments, data),
                )

        logger.info("catalog_fetch", source=source_id, operation=operation, key=key)
        data = await getattr(source, spec.method)(**arguments)

        if spec.many and not data:
            logger.debug("catalog_empty_result_not_cached", key=key)
        else:
            await self._cache.set(key, self._dump(spec, data), ttl=self._ttls[spec.ttl])

        return CatalogResult(
            source=source_id,
            operation=operation,
            data=data,
            cached=False,
            pagination=self._pagination(spec, arguments, data),
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_supported(source: BaseSource, operation: str, spec: OperationSpec) -> None:
        if spec.capability is not None:
            supported = source.supports(spec.capability)
        else:
            supported = operation in source.extra_operations
        if not supported:
            raise UnsupportedOperationError(source.source_id, operation)

    @staticmethod
    def _validate(spec: OperationSpec, params: Mapping[str, Any]) -> dict[str, Any]:
        arguments: dict[str, Any] = {}

        for name in spec.params:
            value = params.get(name)
            if not isinstance(value, str) or not value.strip():
                raise ParameterValidationError(f"Parameter '{name}' is required", parameter=name)
            arguments[name] = value.strip()

        if spec.paged:
            raw_page = params.get("page", 1)
            try:
                page = int(raw_page)
            except (TypeError, ValueError):
                raise ParameterValidationError(
                    f"Parameter 'page' must be an integer, got {raw_page!r}", parameter="page"
                )
            if page < 1:
                raise ParameterValidationError("Parameter 'page' must be >= 1", parameter="page")
            arguments["page"] = page

        return arguments

    def _pagination(
        self, spec: OperationSpec, arguments: Mapping[str, Any], data: Any
    ) -> Optional[PaginationInfo]:
        if not spec.paged:
            return None
        return PaginationInfo(
            current_page=arguments["page"],
            has_next_page=len(data) >= self._settings.page_size,
        )

    @staticmethod
    def _dump(spec: OperationSpec, data: Any) -> Any:
        if spec.many:
            return [record.to_cache() for record in data]
        return data.to_cache()

    async def _restore(self, key: str, spec: OperationSpec, cached: Any) -> Optional[Any]:
        """Rebuild records from a cached value.

        A value that no longer fits the record model (written by an older
        schema, or corrupt) is evicted and treated as a miss.
        """
        try:
            if spec.many:
                return [spec.model.from_cache(item) for item in cached]
            return spec.model.from_cache(cached)
        except (ValidationError, TypeError) as e:
            logger.warning("catalog_cache_entry_invalid", key=key, error=str(e))
            await self._cache.delete(key)
            return None
