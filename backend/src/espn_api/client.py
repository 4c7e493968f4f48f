"""
ESPN API Client with bounded concurrency, request deduplication, retry logic, and error handling.

Handles all communication with the ESPN site API (schedules, game summaries, team logos).
"""

import asyncio
import logging
import os
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Deque, Dict, Optional, Set, Union

import httpx
from asyncio_throttle import Throttler

from config import Config

logger = logging.getLogger(__name__)

USER_AGENT = "Sports-Sync-Service/2.0"


class SportsAPIError(Exception):
    """Base exception for sports API errors."""
    pass


class NetworkError(SportsAPIError):
    """Raised when a request fails (timeout, bad status, unusable body, retries exhausted)."""

    def __init__(
        self,
        message: str,
        reason: str = "retries_exhausted",
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code
        self.url = url


class RateLimitError(NetworkError):
    """Raised when rate limiting (429) persists after all retries."""
    pass


class ShutdownError(SportsAPIError):
    """Raised for requests that were queued or in flight when the client closed."""
    pass


@dataclass(frozen=True)
class _CachedResponse:
    etag: Optional[str]
    last_modified: Optional[str]
    payload: Any


class _RequestGate:
    """FIFO concurrency gate. Waiters are woken one-for-one and failed on close."""

    def __init__(self, limit: int):
        self.limit = limit
        self.active = 0
        self._waiters: Deque[asyncio.Future] = deque()
        self._closed = False

    @property
    def queued(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def acquire(self):
        if self._closed:
            raise ShutdownError("API client is closed")
        if self.active < self.limit and not self._waiters:
            self.active += 1
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            # release() hands its slot straight to us, active is not decremented
            await waiter
        except asyncio.CancelledError:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
            elif waiter.done() and not waiter.cancelled() and waiter.exception() is None:
                self.release()
            raise

    def release(self):
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self.active -= 1

    def close(self):
        self._closed = True
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(ShutdownError("API client closed while request was queued"))


class SportsAPIClient:
    """Client for fetching JSON and files from the ESPN API."""

    def __init__(
        self,
        config: Config,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config
        self.max_retries = config.max_retries
        self.retry_backoff_base = config.retry_backoff_base
        self.request_timeout = config.request_timeout
        self.http_cache_enabled = config.http_cache_enabled
        self.shutdown_grace_seconds = config.shutdown_grace_seconds
        self._sleep = sleep

        # At most N requests in flight process-wide
        self._gate = _RequestGate(config.max_concurrent_requests)
        # Provider rate limit on top of the concurrency gate
        self.throttler = Throttler(
            rate_limit=config.max_requests_per_minute,
            period=60.0
        )

        # url -> shared task for the initial call (dedup)
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._http_cache: Dict[str, _CachedResponse] = {}
        self._closed = False

        self.client = httpx.AsyncClient(
            timeout=self.request_timeout,
            follow_redirects=True,
            transport=transport,
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
            }
        )

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def active_requests(self) -> int:
        return self._gate.active

    @property
    def queued_requests(self) -> int:
        return self._gate.queued

    def _backoff_delay(self, attempt: int, status_code: Optional[int]) -> float:
        """Exponential for rate limiting (1s, 2s, 4s), linear otherwise (1s, 2s, 3s)."""
        if status_code == 429:
            return self.retry_backoff_base * (2 ** attempt)
        return self.retry_backoff_base * (attempt + 1)

    async def fetch_json(self, url: str) -> Any:
        """
        Fetch and decode a JSON document.

        Concurrent calls for a URL that is already being fetched share the
        outstanding result instead of issuing a second request.

        Raises:
            RateLimitError: If still rate limited after all retries
            NetworkError: For other failures after retries exhausted
            ShutdownError: If the client is (or gets) closed
        """
        if self._closed:
            raise ShutdownError("API client is closed")

        task = self._in_flight.get(url)
        if task is not None:
            logger.debug("Reusing in-flight request", extra={"url": url[:120]})
        else:
            task = asyncio.ensure_future(self._fetch_with_retry(url))
            self._in_flight[url] = task
            self._tasks.add(task)
            task.add_done_callback(lambda t, key=url: self._on_task_done(key, t))

        # Shield so one caller's cancellation doesn't cancel the shared fetch
        return await asyncio.shield(task)

    def _on_task_done(self, url: str, task: asyncio.Task):
        self._tasks.discard(task)
        if self._in_flight.get(url) is task:
            del self._in_flight[url]
        # Mark the exception retrieved even if every waiter went away
        if not task.cancelled():
            task.exception()

    async def _fetch_with_retry(self, url: str) -> Any:
        last_error: Optional[NetworkError] = None

        for attempt in range(self.max_retries + 1):
            try:
                return await self._attempt(url)
            except NetworkError as e:
                last_error = e

            if attempt >= self.max_retries:
                break

            wait_time = self._backoff_delay(attempt, last_error.status_code)
            if last_error.status_code == 429:
                logger.warning(
                    "Rate limited by ESPN API, retrying",
                    extra={"url": url[:120], "attempt": attempt + 1, "wait_time": wait_time}
                )
            else:
                logger.warning(
                    "Request failed, retrying",
                    extra={
                        "url": url[:120],
                        "attempt": attempt + 1,
                        "wait_time": wait_time,
                        "reason": last_error.reason,
                        "error": str(last_error),
                    }
                )
            await self._sleep(wait_time)
            if self._closed:
                raise ShutdownError("API client closed during retry backoff")

        if last_error.status_code == 429:
            raise RateLimitError(
                f"Rate limited after {self.max_retries} retries",
                status_code=429,
                url=url,
            ) from last_error
        raise NetworkError(
            f"Request failed after {self.max_retries} retries: {last_error}",
            status_code=last_error.status_code,
            url=url,
        ) from last_error

    async def _send(self, url: str, headers: Optional[Dict[str, str]] = None) -> httpx.Response:
        """One GET through the concurrency gate and throttler."""
        await self._gate.acquire()
        try:
            await self.throttler.acquire()
            if self._closed:
                raise ShutdownError("API client is closed")
            try:
                return await self.client.get(url, headers=headers)
            except httpx.TimeoutException as e:
                raise NetworkError(
                    f"Request timeout after {self.request_timeout}s",
                    reason="timeout",
                    url=url,
                ) from e
            except httpx.HTTPError as e:
                raise NetworkError(f"Network error: {e}", reason="network", url=url) from e
        finally:
            self._gate.release()

    async def _attempt(self, url: str) -> Any:
        headers: Dict[str, str] = {}
        cached = self._http_cache.get(url) if self.http_cache_enabled else None
        if cached is not None:
            if cached.etag:
                headers["If-None-Match"] = cached.etag
            if cached.last_modified:
                headers["If-Modified-Since"] = cached.last_modified

        response = await self._send(url, headers=headers or None)

        if self._closed:
            raise ShutdownError("API client closed; discarding response")

        status_code = response.status_code
        if status_code == 304 and cached is not None:
            logger.debug("Not modified, using cached response", extra={"url": url[:120]})
            return cached.payload

        if status_code != 200:
            raise NetworkError(f"HTTP {status_code}", reason="http_status", status_code=status_code, url=url)

        if not response.content:
            raise NetworkError("Empty response", reason="invalid_body", status_code=status_code, url=url)

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(
                f"Failed to parse JSON: {e}",
                reason="invalid_body",
                status_code=status_code,
                url=url,
            ) from e

        if self.http_cache_enabled:
            etag = response.headers.get("ETag")
            last_modified = response.headers.get("Last-Modified")
            if etag or last_modified:
                self._http_cache[url] = _CachedResponse(etag, last_modified, data)

        return data

    async def download_file(self, url: str, dest_path: Union[str, Path]) -> Path:
        """
        Download a file, replacing dest_path atomically.

        The body is written to "<dest>.tmp" and renamed over the destination so
        readers never observe a partially written file.
        """
        if self._closed:
            raise ShutdownError("API client is closed")

        dest = Path(dest_path)
        response = await self._send(url)

        if self._closed:
            raise ShutdownError("API client closed; discarding download")
        if response.status_code != 200:
            raise NetworkError(
                f"HTTP {response.status_code}",
                reason="http_status",
                status_code=response.status_code,
                url=url,
            )

        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = dest.with_name(dest.name + ".tmp")
        try:
            tmp_path.write_bytes(response.content)
            os.replace(tmp_path, dest)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.debug("Downloaded file", extra={"url": url[:120], "path": str(dest), "bytes": len(response.content)})
        return dest

    async def close(self):
        """Close the client: fail queued waiters, drop dedup entries, close the HTTP pool."""
        if self._closed:
            return
        self._closed = True
        self._gate.close()
        self._in_flight.clear()

        pending = [task for task in self._tasks if not task.done()]
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=self.shutdown_grace_seconds)
            for task in still_pending:
                task.cancel()

        await self.client.aclose()
        logger.info("API client closed", extra={"in_flight_at_shutdown": len(pending)})

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
