"""HTTP fakes shared by the test modules."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from yahoo_history.data.session import YahooSession

HISTORY_CSV = (
    "Date,Open,High,Low,Close,Adj Close,Volume\n"
    "2024-01-02,187.15,188.44,183.89,185.64,185.40,82488700\n"
    "2024-01-03,184.22,185.88,183.43,184.25,184.01,58414500\n"
    "2024-01-04,182.15,183.09,180.88,181.91,181.68,71983600\n"
)


class FakeResponse:
    """Minimal stand-in for a streamed requests.Response."""

    def __init__(
        self, status_code: int = 200, text: str = "", encoding: str | None = "utf-8"
    ) -> None:
        self.status_code = status_code
        self.text = text
        self.encoding = encoding
        self.closed = False

    def iter_lines(self, decode_unicode: bool = False) -> Any:
        _ = decode_unicode
        return iter(self.text.splitlines())

    def close(self) -> None:
        self.closed = True


Handler = Callable[[str, dict[str, Any]], FakeResponse]


class FakeClient:
    """Stand-in for requests.Session that routes GETs through a handler."""

    def __init__(self, handler: Handler, cookies: dict[str, str] | None = None) -> None:
        self.handler = handler
        self.headers: dict[str, str] = {}
        self.cookies: dict[str, str] = {} if cookies is None else cookies
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        with self._lock:
            self.calls.append((url, kwargs))
        return self.handler(url, kwargs)

    def close(self) -> None:
        self.closed = True


class StubSessionProvider:
    """Session provider handing out numbered crumbs without a handshake."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.acquire_calls: list[bool] = []
        self.handshakes = 0
        self.closed = False
        self.clients: list[FakeClient] = []
        self._session: YahooSession | None = None
        self._lock = threading.Lock()

    def acquire(self, force_reset: bool = False) -> YahooSession:
        with self._lock:
            self.acquire_calls.append(force_reset)
            if self._session is None or force_reset:
                self.handshakes += 1
                client = FakeClient(self.handler, cookies={"A3": "cookie"})
                self.clients.append(client)
                self._session = YahooSession(client=client, crumb=f"crumb-{self.handshakes}")
            return self._session

    def close(self) -> None:
        self.closed = True

    @property
    def download_calls(self) -> list[tuple[str, dict[str, Any]]]:
        return [call for client in self.clients for call in client.calls]


def csv_handler(text: str = HISTORY_CSV) -> Handler:
    def handler(_url: str, _kwargs: dict[str, Any]) -> FakeResponse:
        return FakeResponse(200, text)

    return handler
