"""
MangaHub - scraping core for manga, manhwa and manhua catalog sites.

This package contains:
- config: Pydantic settings and configuration
- core: error taxonomy, request queue, HTTP client, two-tier cache, container
- models: Domain records returned by the sources
- sources: Per-site adapters and the normalization layer they share
- services: Catalog service composing cache and adapters
"""

__version__ = "0.1.0"
