"""
MangaHub Test Suite.

This package contains all tests for the MangaHub scraping core:

- unit/: normalizers, extraction rules, queue, HTTP client, cache, adapters, catalog
- integration/: full container pipeline against simulated upstream sites
- conftest.py: Shared fixtures and test configuration

Run tests with: pytest
"""
