"""
Base integration classes for the sniper worker

All upstream traffic goes through a single ThrottledFetcher so the
provider rate limits hold even when several callers are waiting.
"""

import asyncio
import logging
from typing import Any, List, Optional

import aiohttp

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """An upstream call failed after its retry budget was spent"""

    def __init__(self, message: str, url: str = None):
        super().__init__(message)
        self.url = url


class HTTPStatusError(FetchError):
    def __init__(self, status: int, url: str = None, body: str = ''):
        super().__init__(f"HTTP {status}: {body[:200]}" if body else f"HTTP {status}", url)
        self.status = status


class RPCError(FetchError):
    def __init__(self, code: Optional[int], message: str, url: str = None):
        super().__init__(f"RPC error {code}: {message}", url)
        self.code = code


RETRYABLE_STATUSES = (408, 429)


def is_retryable(error: Exception) -> bool:
    """Transport failures, timeouts, 408/429 and 5xx are retried; other HTTP statuses are final"""
    if isinstance(error, HTTPStatusError):
        return error.status in RETRYABLE_STATUSES or error.status >= 500
    return True


class ThrottledFetcher:
    """
    Single-slot request queue with a minimum spacing between calls.

    Every call gets its own retry budget. Backoff sleeps happen outside the
    slot, so other waiting callers are not held up by a failing one.
    """

    def __init__(self, min_interval: float = 0.38, max_retries: int = 3,
                 backoff_base: float = 1.0, backoff_cap: float = 10.0,
                 timeout: float = 30, session: aiohttp.ClientSession = None):
        self.min_interval = min_interval
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self.timeout = timeout
        self.session = session
        self._slot = asyncio.Lock()
        self._last_call_started: Optional[float] = None
        self.request_count = 0

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'Accept': 'application/json'}
            )
        return self.session

    async def close(self):
        """Close the session"""
        if self.session and not self.session.closed:
            await self.session.close()

    def backoff_delay(self, attempt: int) -> float:
        """Delay before retry number `attempt` (1-based), growing per attempt up to the cap"""
        return min(self.backoff_cap, attempt * self.backoff_base + self.backoff_base / 2)

    def backoff_schedule(self) -> List[float]:
        return [self.backoff_delay(attempt) for attempt in range(1, self.max_retries + 1)]

    async def fetch(self, url: str, method: str = 'GET', **options) -> Any:
        """Fetch a JSON body, retrying transient failures; raises FetchError when exhausted"""
        attempt = 0
        while True:
            try:
                return await self._throttled(method, url, **options)
            except (FetchError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                if not is_retryable(e):
                    logger.warning(f"{method} {url} failed ({e}), not retrying")
                    raise
                if attempt >= self.max_retries:
                    logger.warning(f"Giving up on {method} {url} after {attempt + 1} attempts: {e}")
                    if isinstance(e, FetchError):
                        raise
                    raise FetchError(str(e) or e.__class__.__name__, url) from e
                attempt += 1
                delay = self.backoff_delay(attempt)
                logger.warning(f"{method} {url} failed ({e}), retry {attempt}/{self.max_retries} in {delay:.1f}s")
                await asyncio.sleep(delay)

    async def _throttled(self, method: str, url: str, **options) -> Any:
        async with self._slot:
            loop = asyncio.get_running_loop()
            if self._last_call_started is not None:
                wait = self.min_interval - (loop.time() - self._last_call_started)
                if wait > 0:
                    await asyncio.sleep(wait)
            self._last_call_started = loop.time()
            self.request_count += 1
            return await self._request(method, url, **options)

    async def _request(self, method: str, url: str, **options) -> Any:
        session = await self.get_session()
        async with session.request(method, url, **options) as response:
            if response.status != 200:
                body = await response.text()
                raise HTTPStatusError(response.status, url, body)
            return await response.json(content_type=None)


class BaseAPIClient:
    """Base class for upstream clients sharing one ThrottledFetcher"""

    def __init__(self, fetcher: ThrottledFetcher, base_url: str):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip('/')

    async def make_request(self, method: str, endpoint: str = '', **kwargs) -> Any:
        url = f"{self.base_url}/{endpoint.lstrip('/')}" if endpoint else self.base_url
        return await self.fetcher.fetch(url, method=method, **kwargs)

