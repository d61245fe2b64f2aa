"""Async HTTP client used by every source adapter.

Wraps ``httpx.AsyncClient`` with:
- a random User-Agent per request, drawn from the configured pool
- translation of HTTP failures into the MangaHub error taxonomy
- exponential-backoff retries (tenacity)
- routing of every request through the shared ``RequestQueue``

Example:
    client = SourceHttpClient("mangareader", "https://mangareader.to", queue, settings)
    async with client:
        soup = await client.fetch_document("/home")
        data = await client.fetch_json("/ajax/image/list/chap/123")
"""

import random
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx
import structlog
from bs4 import BeautifulSoup
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential

from mangahub.config.settings import Settings, get_settings
from mangahub.core.exceptions import (
    FetchError,
    SourceNotFoundError,
    SourceTimeoutError,
    SourceUnavailableError,
)
from mangahub.core.request_queue import RequestQueue

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}

JSON_ACCEPT = "application/json"


class SourceHttpClient:
    """Queue-paced, retrying HTTP client bound to one upstream site.

    Args:
        source_id: Source name used in errors and log lines.
        base_url: Root URL relative paths are resolved against.
        queue: Shared request queue; all fetches are serialized through it.
        settings: Application settings. Defaults to get_settings().
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        source_id: str,
        base_url: str,
        queue: RequestQueue,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._settings = settings or get_settings()
        self.source_id = source_id
        self.base_url = base_url.rstrip("/")
        self._queue = queue
        self._transport = transport
        self._max_attempts = self._settings.retry_attempts
        self._base_delay = self._settings.retry_base_delay_seconds
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "SourceHttpClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._settings.request_timeout_seconds),
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def random_user_agent(self) -> str:
        """Pick a User-Agent uniformly at random from the configured pool."""
        return random.choice(self._settings.user_agents)

    # -------------------------------------------------------------------------
    # Public fetch API
    # -------------------------------------------------------------------------

    async def fetch_document(
        self, path: str, headers: Optional[dict[str, str]] = None
    ) -> BeautifulSoup:
        """Fetch a page and parse it into a BeautifulSoup tree."""
        text = await self.fetch_text(path, headers=headers)
        return BeautifulSoup(text, "html.parser")

    async def fetch_text(self, path: str, headers: Optional[dict[str, str]] = None) -> str:
        """Fetch a page and return the raw body text."""
        response = await self._enqueue(path, headers)
        return response.text

    async def fetch_json(self, path: str, headers: Optional[dict[str, str]] = None) -> Any:
        """Fetch a JSON endpoint and return the decoded body.

        ``path`` may be absolute, which lets a source talk to a separate API host.
        """
        merged = {"Accept": JSON_ACCEPT, **(headers or {})}
        response = await self._enqueue(path, merged)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(
                self.source_id,
                path,
                response.status_code,
                f"Invalid JSON from {path}: {e}",
            )

    # -------------------------------------------------------------------------
    # Pipeline: queue -> retry -> single request
    # -------------------------------------------------------------------------

    async def _enqueue(self, path: str, headers: Optional[dict[str, str]]) -> httpx.Response:
        return await self._queue.add(
            lambda: self.with_retry(lambda: self._request(path, headers), path)
        )

    async def with_retry(self, operation: Callable[[], Awaitable[T]], path: str = "") -> T:
        """Run ``operation`` with exponential backoff.

        Every error is retried until ``retry_attempts`` is exhausted; the error
        from the final attempt is re-raised unchanged.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._base_delay),
            reraise=True,
            before_sleep=lambda retry_state: logger.warning(
                "fetch_retry",
                source=self.source_id,
                path=path,
                attempt=retry_state.attempt_number,
                max_attempts=self._max_attempts,
                wait_seconds=retry_state.next_action.sleep,
                error=str(retry_state.outcome.exception()),
            ),
        )
        async for attempt in retrying:
            with attempt:
                return await operation()

    async def _request(self, path: str, headers: Optional[dict[str, str]]) -> httpx.Response:
        client = self._ensure_client()
        request_headers = {"User-Agent": self.random_user_agent(), **(headers or {})}

        try:
            response = await client.get(path, headers=request_headers)
        except httpx.TimeoutException as e:
            logger.warning("fetch_timeout", source=self.source_id, path=path, error=str(e))
            raise SourceTimeoutError(
                self.source_id,
                f"Request timeout: {path}",
                {"path": path},
            )
        except httpx.RequestError as e:
            logger.warning("fetch_request_error", source=self.source_id, path=path, error=str(e))
            raise FetchError(self.source_id, path, None, f"Request failed for {path}: {e}")

        if response.status_code == 404:
            raise SourceNotFoundError(
                self.source_id,
                "Content not found",
                {"path": path},
            )
        if response.status_code == 503:
            raise SourceUnavailableError(
                self.source_id,
                "Service temporarily unavailable",
                {"path": path},
            )
        if not response.is_success:
            logger.error(
                "fetch_unexpected_status",
                source=self.source_id,
                path=path,
                status_code=response.status_code,
            )
            raise FetchError(self.source_id, path, response.status_code)

        logger.debug("fetch_ok", source=self.source_id, path=path, status_code=response.status_code)
        return response
