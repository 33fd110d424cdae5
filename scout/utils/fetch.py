"""
HTTP fetching for Faculty Scout.

Every scraper goes through PageFetcher: browser-like headers, a rotating
user-agent pool, and retry with exponential backoff when a site answers 429.
"""

import asyncio
import logging
import random
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import aiohttp

from scout.config import DEFAULT_USER_AGENTS
from scout.utils.retry import retry_with_backoff

logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
JSON_ACCEPT = "application/json"


class FetchError(Exception):
    """A request failed at the transport level or returned a non-2xx status."""

    def __init__(self, url: str, status: int | None = None, message: str = ""):
        self.url = url
        self.status = status
        detail = message or (f"HTTP {status}" if status else "request failed")
        super().__init__(f"Failed to fetch {url}: {detail}")


class RateLimitError(FetchError):
    """The server answered 429 Too Many Requests."""

    def __init__(self, url: str):
        super().__init__(url, status=429, message="HTTP 429 Too Many Requests")


class PageFetcher:
    """
    Fetches pages and JSON documents with retry on rate limiting.

    Each instance keeps its own request counter; the counter picks the
    User-Agent so consecutive requests cycle through the pool.
    """

    def __init__(
        self,
        user_agents: list[str] | None = None,
        timeout: float = 30,
        max_retries: int = 2,
        retry_base_delay: float = 2.0,
        retry_factor: float = 2.0,
        retry_max_delay: float = 30.0,
        retry_jitter: float = 0.1,
        extra_headers: dict[str, str] | None = None,
        session: aiohttp.ClientSession | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        rng: random.Random | None = None,
    ):
        self.user_agents = list(user_agents or DEFAULT_USER_AGENTS)
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_factor = retry_factor
        self.retry_max_delay = retry_max_delay
        self.retry_jitter = retry_jitter
        self.extra_headers = dict(extra_headers or {})
        self.session = session
        self.sleep = sleep or asyncio.sleep
        self.rng = rng
        self.request_count = 0

    @classmethod
    def from_config(
        cls,
        fetch_config: dict[str, Any],
        source_config: dict[str, Any],
        **kwargs,
    ) -> "PageFetcher":
        """Build a fetcher from the ``fetch`` section and a source section."""
        return cls(
            user_agents=fetch_config.get("user_agent_list"),
            timeout=fetch_config.get("timeout", 30),
            max_retries=source_config.get("max_retries", 2),
            retry_base_delay=source_config.get("retry_base_delay", 2.0),
            retry_factor=source_config.get("retry_factor", 2.0),
            retry_max_delay=source_config.get("retry_max_delay", 30.0),
            retry_jitter=source_config.get("retry_jitter", 0.1),
            **kwargs,
        )

    def next_user_agent(self) -> str:
        """Return the agent for the next request and advance the counter."""
        agent = self.user_agents[self.request_count % len(self.user_agents)]
        self.request_count += 1
        return agent

    def build_headers(self, accept: str) -> dict[str, str]:
        headers = {
            "User-Agent": self.next_user_agent(),
            "Accept": accept,
            "Accept-Language": "en-US,en;q=0.9",
        }
        headers.update(self.extra_headers)
        return headers

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[aiohttp.ClientSession]:
        """Yield the injected session, or a short-lived one for this request."""
        if self.session is not None:
            yield self.session
            return

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(
            timeout=timeout,
            cookie_jar=aiohttp.CookieJar(unsafe=True),
        ) as session:
            yield session

    async def _fetch_once(self, url: str, accept: str, as_json: bool) -> Any:
        """Perform a single GET; raise RateLimitError on 429 so it is retried."""
        headers = self.build_headers(accept)
        try:
            async with self._session_scope() as session:
                async with session.get(url, headers=headers) as response:
                    if response.status == 429:
                        raise RateLimitError(url)
                    if not 200 <= response.status < 300:
                        raise FetchError(url, status=response.status)
                    if as_json:
                        return await response.json(content_type=None)
                    return await response.text()
        except FetchError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise FetchError(url, message=str(e) or type(e).__name__) from e

    async def _fetch(self, url: str, accept: str, as_json: bool) -> Any:
        return await retry_with_backoff(
            self._fetch_once,
            url,
            accept,
            as_json,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            factor=self.retry_factor,
            jitter=self.retry_jitter,
            retry_on=(RateLimitError,),
            sleep=self.sleep,
            rng=self.rng,
        )

    async def fetch(self, url: str, accept: str = HTML_ACCEPT) -> str:
        """
        Fetch a page as text.

        Raises:
            RateLimitError: if every attempt was answered with 429
            FetchError: on any other transport failure or non-2xx status
        """
        return await self._fetch(url, accept, as_json=False)

    async def fetch_json(self, url: str) -> Any:
        """Fetch and decode a JSON document; same failure contract as fetch()."""
        return await self._fetch(url, JSON_ACCEPT, as_json=True)
