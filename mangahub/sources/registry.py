"""Source registry for runtime adapter selection.

Provides decorator-based registration and a factory function for adapters.
"""

from typing import TYPE_CHECKING, Optional

from mangahub.config.settings import Settings
from mangahub.core.exceptions import ParameterValidationError

if TYPE_CHECKING:
    from mangahub.core.http_client import SourceHttpClient
    from mangahub.sources.base import BaseSource


_sources: dict[str, type["BaseSource"]] = {}


def register_source(source_id: str):
    """Decorator to register a source adapter class.

    Args:
        source_id: Identifier callers use to address the source.

    Returns:
        Decorator function that registers the class.

    Example:
        @register_source("mangareader")
        class MangaReaderSource(BaseSource):
            ...
    """

    def decorator(cls: type["BaseSource"]):
        cls.source_id = source_id
        _sources[source_id] = cls
        return cls

    return decorator


def get_source_class(source_id: str) -> type["BaseSource"]:
    """Look up a registered adapter class.

    Raises:
        ParameterValidationError: If no source is registered under this id.
    """
    if source_id not in _sources:
        raise ParameterValidationError(f"Unknown source: {source_id}", parameter="source")
    return _sources[source_id]


def create_source(
    source_id: str,
    client: "SourceHttpClient",
    settings: Optional[Settings] = None,
) -> "BaseSource":
    """Factory function to get an adapter instance.

    Args:
        source_id: The registered source id.
        client: HTTP client bound to the source's base URL.
        settings: Application settings.

    Returns:
        Instantiated adapter.
    """
    return get_source_class(source_id)(client, settings)


def list_sources() -> list[str]:
    """List all registered source ids."""
    return list(_sources.keys())
