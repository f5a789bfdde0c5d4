"""Async HTTP fetcher over a bounded thread pool."""

import asyncio
import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

import requests
from requests.exceptions import HTTPError, RequestException, Timeout

from research_mcp.config import ResearchConfig
from research_mcp.errors import FetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class HttpFetcher:
    """
    Fetch pages and JSON without blocking the event loop.

    Each call is a single attempt bounded by the configured timeout. There
    is no retry: callers substitute another source instead. One fetcher
    belongs to one request context and is closed with it.
    """

    def __init__(
        self,
        config: ResearchConfig,
        session_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self._config = config
        self._session_factory = session_factory
        # requests.Session is not thread-safe: each pool thread gets its own
        self._local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=config.max_workers)
        self._semaphore = asyncio.Semaphore(config.max_workers)

    @property
    def timeout(self) -> float:
        return self._config.http_timeout

    def thread_session(self) -> requests.Session:
        """The calling thread's session, created on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._session_factory()
            session.headers.update(
                {
                    "User-Agent": self._config.user_agent,
                    "Accept-Language": "en-US,en;q=0.5",
                }
            )
            self._local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session

    async def run_sync(self, operation_name: str, sync_func: Callable[[], T]) -> T:
        """
        Run a blocking call in the pool, bounded by the request timeout.

        Raises:
            FetchError: If the call times out
        """
        async with self._semaphore:
            loop = asyncio.get_running_loop()
            try:
                return await asyncio.wait_for(
                    loop.run_in_executor(self._executor, sync_func),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError as e:
                logger.info(f"{operation_name}: timed out after {self.timeout:.0f}s")
                raise FetchError(f"{operation_name} timed out") from e

    def _get(self, url: str, accept: str) -> requests.Response:
        try:
            response = self.thread_session().get(url, headers={"Accept": accept}, timeout=self.timeout)
            response.raise_for_status()
        except HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise FetchError(f"GET {url} returned {status}", url=url, status=status) from e
        except Timeout as e:
            raise FetchError(f"GET {url} timed out", url=url) from e
        except RequestException as e:
            raise FetchError(f"GET {url} failed: {e}", url=url) from e
        return response

    async def get_text(self, url: str) -> str:
        """
        Fetch a page body.

        Raises:
            FetchError: On network failure, timeout or non-2xx status
        """
        response = await self.run_sync(f"get_text({url})", lambda: self._get(url, _ACCEPT_HTML))
        return response.text

    async def get_json(self, url: str) -> Any:
        """
        Fetch and decode a JSON document.

        Raises:
            FetchError: On network failure, timeout, non-2xx status or invalid JSON
        """
        response = await self.run_sync(
            f"get_json({url})", lambda: self._get(url, "application/json")
        )
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"GET {url} returned invalid JSON", url=url) from e

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
