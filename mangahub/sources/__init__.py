"""
Source Adapters.

One adapter per upstream site, all implementing BaseSource:

- mangareader: mangareader.to (HTML + AJAX image list)
- hentai20: hentai20.io (WordPress reader theme)
- omegascans: omegascans.org (JSON API + Next.js reader)

Importing this package registers every adapter.

Example:
    from mangahub.sources import create_source, list_sources

    source = create_source("mangareader", client, settings)
    results = await source.search("one piece")
"""

from mangahub.sources.base import REQUIRED_CAPABILITIES, BaseSource, Capability, scrape_operation
from mangahub.sources.registry import (
    create_source,
    get_source_class,
    list_sources,
    register_source,
)
from mangahub.sources.mangareader import MangaReaderSource
from mangahub.sources.hentai20 import Hentai20Source
from mangahub.sources.omegascans import OmegaScansSource

__all__ = [
    "REQUIRED_CAPABILITIES",
    "BaseSource",
    "Capability",
    "scrape_operation",
    "create_source",
    "get_source_class",
    "list_sources",
    "register_source",
    "MangaReaderSource",
    "Hentai20Source",
    "OmegaScansSource",
]
