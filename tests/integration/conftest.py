"""Integration test configuration.

Builds a full DependencyContainer whose HTTP clients all share one
``httpx.MockTransport``. Upstream sites are simulated by ``FakeUpstream``,
which serves canned bodies per (host, path) and records every request.
"""

import httpx
import pytest

from mangahub.core.container import DependencyContainer


class FakeUpstream:
    """Canned responses keyed by ``(host, path)``."""

    def __init__(self):
        self.routes: dict[tuple[str, str], httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def add(self, host: str, path: str, *, text: str = None, json=None, status: int = 200):
        if json is not None:
            self.routes[(host, path)] = httpx.Response(status, json=json)
        else:
            self.routes[(host, path)] = httpx.Response(status, text=text or "")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.url.host, request.url.path))
        if response is None:
            return httpx.Response(404)
        return httpx.Response(
            response.status_code,
            headers=response.headers,
            content=response.content,
        )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
async def container(settings, upstream):
    container = DependencyContainer(settings, transport=httpx.MockTransport(upstream))
    await container.initialize()
    yield container
    await container.shutdown()
