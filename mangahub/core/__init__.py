"""
Core infrastructure modules for MangaHub.

Provides common utilities used across the application:
- exceptions: Standardized exception hierarchy
- request_queue: Paced FIFO queue shared by all outbound requests
- http_client: Retrying, UA-rotating HTTP client per source
- cache / redis_cache: Two-tier response cache
- container: Dependency container wiring everything together
"""

from mangahub.core.exceptions import (
    MangaHubError,
    RetryableError,
    PermanentError,
    InitializationError,
    SourceError,
    SourceNotFoundError,
    SourceUnavailableError,
    SourceTimeoutError,
    FetchError,
    ScrapeError,
    ParameterValidationError,
    UnsupportedOperationError,
    RateLimitedError,
)

from mangahub.core.request_queue import RequestQueue

from mangahub.core.http_client import SourceHttpClient

from mangahub.core.cache import (
    InMemoryCache,
    TieredCache,
    create_cache,
    generate_cache_key,
)

from mangahub.core.container import DependencyContainer

__all__ = [
    # Exceptions
    "MangaHubError",
    "RetryableError",
    "PermanentError",
    "InitializationError",
    "SourceError",
    "SourceNotFoundError",
    "SourceUnavailableError",
    "SourceTimeoutError",
    "FetchError",
    "ScrapeError",
    "ParameterValidationError",
    "UnsupportedOperationError",
    "RateLimitedError",
    # Fetch pipeline
    "RequestQueue",
    "SourceHttpClient",
    # Cache
    "InMemoryCache",
    "TieredCache",
    "create_cache",
    "generate_cache_key",
    # Dependency Container
    "DependencyContainer",
]
