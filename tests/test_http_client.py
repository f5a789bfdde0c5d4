"""Tests for the async HTTP fetcher."""

import asyncio
import threading
import time

import pytest
import requests

from research_mcp.config import ResearchConfig
from research_mcp.data.http_client import HttpFetcher
from research_mcp.errors import FetchError


class FakeResponse:
    def __init__(self, status: int = 200, text: str = "", payload=None):
        self.status_code = status
        self.text = text
        self._payload = payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Answers every GET with a fixed response or exception."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.headers: dict[str, str] = {}
        self.calls: list[dict] = []
        self.closed = False

    def get(self, url: str, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome

    def close(self) -> None:
        self.closed = True


def _fetch(outcome, method: str = "get_text", config: ResearchConfig | None = None):
    session = FakeSession(outcome)
    fetcher = HttpFetcher(config or ResearchConfig(), session_factory=lambda: session)

    async def run():
        try:
            return await getattr(fetcher, method)("https://example.test/page")
        finally:
            fetcher.close()

    return asyncio.run(run()), session


class TestHttpFetcher:
    """Tests for HttpFetcher."""

    def test_get_text(self) -> None:
        """Page bodies are returned with the configured timeout and user agent."""
        text, session = _fetch(FakeResponse(text="<html>ok</html>"))

        assert text == "<html>ok</html>"
        assert session.calls[0]["timeout"] == 10.0
        assert "Mozilla" in session.headers["User-Agent"]
        assert session.closed

    def test_get_json(self) -> None:
        """JSON bodies are decoded."""
        payload, _ = _fetch(FakeResponse(payload={"chart": {"result": []}}), method="get_json")
        assert payload == {"chart": {"result": []}}

    def test_invalid_json(self) -> None:
        """Undecodable JSON is a fetch failure."""
        with pytest.raises(FetchError, match="invalid JSON"):
            _fetch(FakeResponse(text="<html>"), method="get_json")

    def test_non_2xx(self) -> None:
        """Non-2xx answers raise FetchError carrying the status."""
        with pytest.raises(FetchError) as excinfo:
            _fetch(FakeResponse(status=503))
        assert excinfo.value.status == 503
        assert excinfo.value.url == "https://example.test/page"

    def test_request_timeout(self) -> None:
        """A transport timeout is a fetch failure, not retried."""
        with pytest.raises(FetchError, match="timed out"):
            _fetch(requests.exceptions.Timeout("read timed out"))

    def test_connection_error(self) -> None:
        """Connection errors are fetch failures."""
        with pytest.raises(FetchError, match="failed"):
            _fetch(requests.exceptions.ConnectionError("refused"))

    def test_run_sync_timeout(self) -> None:
        """Blocking calls that overrun the timeout raise FetchError."""
        fetcher = HttpFetcher(
            ResearchConfig(http_timeout=0.05), session_factory=lambda: FakeSession(FakeResponse())
        )

        async def run():
            try:
                return await fetcher.run_sync("slow", lambda: time.sleep(0.5))
            finally:
                fetcher.close()

        with pytest.raises(FetchError, match="slow timed out"):
            asyncio.run(run())

    def test_session_per_thread(self) -> None:
        """Pool threads never share a session; each is closed with the fetcher."""
        created: list[FakeSession] = []

        def factory() -> FakeSession:
            session = FakeSession(FakeResponse(text="ok"))
            created.append(session)
            return session

        fetcher = HttpFetcher(ResearchConfig(), session_factory=factory)
        sessions: dict[str, FakeSession] = {}

        def record(name: str) -> None:
            sessions[name] = fetcher.thread_session()
            assert fetcher.thread_session() is sessions[name]

        threads = [threading.Thread(target=record, args=(name,)) for name in ("a", "b")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        fetcher.close()

        assert sessions["a"] is not sessions["b"]
        assert len(created) == 2
        assert all(session.closed for session in created)
        assert all("Mozilla" in session.headers["User-Agent"] for session in created)
