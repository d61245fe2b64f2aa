"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- settings: Settings with no pacing or backoff delays and no Redis
- queue: Fresh request queue without inter-request delay
- make_client: Factory for SourceHttpClient instances backed by httpx.MockTransport
"""

from typing import Callable

import httpx
import pytest

from mangahub.config.settings import Settings
from mangahub.core.http_client import SourceHttpClient
from mangahub.core.request_queue import RequestQueue

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def settings() -> Settings:
    """Settings that never sleep and never touch Redis."""
    return Settings(
        _env_file=None,
        retry_attempts=3,
        retry_base_delay_seconds=0,
        queue_delay_seconds=0,
        redis_url=None,
        mangareader_base_url="https://mangareader.test",
        hentai20_base_url="https://hentai20.test",
        omegascans_base_url="https://omegascans.test",
        omegascans_api_url="https://api.omegascans.test",
    )


@pytest.fixture
def queue() -> RequestQueue:
    return RequestQueue(delay=0)


@pytest.fixture
def make_client(settings, queue) -> Callable[..., SourceHttpClient]:
    """Build a client for one source whose requests are answered by ``handler``."""

    def factory(source_id: str, base_url: str, handler: Handler) -> SourceHttpClient:
        return SourceHttpClient(
            source_id,
            base_url,
            queue,
            settings,
            transport=httpx.MockTransport(handler),
        )

    return factory
