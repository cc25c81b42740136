"""Cookie and crumb session shared by all download requests."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

import requests

from yahoo_history.cancellation import CancellationToken
from yahoo_history.errors import HandshakeError

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class YahooSession:
    """Authenticated client plus the crumb scoped to its cookies."""

    client: requests.Session
    crumb: str


class SessionProvider:
    """Lazily create, cache and replace the authenticated session.

    Reads of the cached session take no lock. Only the handshake itself is
    serialized, so callers racing on a cold start share one handshake while
    in-flight downloads keep using whatever session they already hold.
    """

    def __init__(
        self,
        cookie_url: str = "https://fc.yahoo.com",
        crumb_url: str = "https://query2.finance.yahoo.com/v1/test/getcrumb",
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: int = 20,
        session_factory: Callable[[], requests.Session] = requests.Session,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self.cookie_url = cookie_url
        self.crumb_url = crumb_url
        self.user_agent = user_agent
        self.timeout = timeout
        self.session_factory = session_factory
        self.cancel_token = cancel_token or CancellationToken()
        self.logger = logging.getLogger("yahoo_history.session")
        self._session: YahooSession | None = None
        self._lock = threading.Lock()

    def acquire(self, force_reset: bool = False) -> YahooSession:
        """Return the cached session, performing a handshake when needed."""
        current = self._session
        if current is not None and not force_reset:
            return current

        with self._lock:
            if not force_reset and self._session is not None:
                return self._session
            fresh = self._handshake()
            self._session = fresh
            return fresh

    def close(self) -> None:
        with self._lock:
            current, self._session = self._session, None
        if current is not None:
            current.client.close()

    def _handshake(self) -> YahooSession:
        self.cancel_token.raise_if_cancelled()
        self.logger.info("Acquiring session cookie and crumb.")
        client = self.session_factory()
        client.headers.update({"User-Agent": self.user_agent})
        try:
            crumb = self._request_crumb(client)
        except BaseException:
            client.close()
            raise
        self.logger.debug("Session ready.")
        return YahooSession(client=client, crumb=crumb)

    def _request_crumb(self, client: requests.Session) -> str:
        try:
            # fc.yahoo.com answers with an error status but still sets the cookie.
            client.get(self.cookie_url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException as exc:
            raise HandshakeError(f"Session cookie request failed: {exc}") from exc
        if not client.cookies:
            raise HandshakeError(f"No session cookie returned by {self.cookie_url}")

        self.cancel_token.raise_if_cancelled()
        try:
            response = client.get(self.crumb_url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise HandshakeError(f"Crumb request failed: {exc}") from exc
        if response.status_code != 200:
            raise HandshakeError(f"Crumb request returned status {response.status_code}")
        crumb = response.text.strip()
        if not crumb:
            raise HandshakeError("Crumb request returned an empty body")
        return crumb
