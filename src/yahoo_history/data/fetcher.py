"""Authenticated CSV download with a single session reset on 401."""

from __future__ import annotations

import logging

import requests
from requests.utils import quote

from yahoo_history.cancellation import CancellationToken
from yahoo_history.data.session import SessionProvider
from yahoo_history.domain.models import Frequency, TickKind
from yahoo_history.errors import AuthorizationError, RemoteServiceError, SymbolNotFoundError


class AuthenticatedFetcher:
    """Issue download requests, re-handshaking once when the crumb has expired.

    Uses endpoint:
    GET /v7/finance/download/{symbol}
    """

    def __init__(
        self,
        session_provider: SessionProvider,
        download_url: str = "https://query1.finance.yahoo.com/v7/finance/download",
        timeout: int = 20,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self.session_provider = session_provider
        self.download_url = download_url.rstrip("/")
        self.timeout = timeout
        self.cancel_token = cancel_token or CancellationToken()
        self.logger = logging.getLogger("yahoo_history.fetcher")

    def fetch(
        self,
        symbol: str,
        kind: TickKind,
        start: int,
        end: int,
        frequency: Frequency = Frequency.DAILY,
    ) -> requests.Response:
        """Return the open, streaming response for a successful download.

        The caller owns the response and must close it.
        """
        # The symbol is one path segment; "#", "?" and "/" must not leak into the URL.
        url = f"{self.download_url}/{quote(symbol, safe='')}"
        reset = False
        while True:
            self.cancel_token.raise_if_cancelled()
            session = self.session_provider.acquire(force_reset=reset)
            params = {
                "period1": str(start),
                "period2": str(end),
                "interval": frequency.interval,
                "events": str(kind),
                "crumb": session.crumb,
            }
            self.logger.info("GET %s %s", url, params)
            try:
                response = session.client.get(
                    url, params=params, timeout=self.timeout, stream=True
                )
            except requests.RequestException as exc:
                raise RemoteServiceError(f"Download request failed for {symbol}: {exc}") from exc

            if response.status_code == 401 and not reset:
                self.logger.debug("Unauthorized for %s. Resetting session and retrying.", symbol)
                response.close()
                reset = True
                continue
            if response.status_code < 400:
                return response
            raise self._error_for(symbol, response)

    @staticmethod
    def _error_for(symbol: str, response: requests.Response) -> RemoteServiceError:
        status = response.status_code
        detail = (response.text or "").strip()[:200] or "No response body"
        response.close()
        if status == 404:
            return SymbolNotFoundError(f"Symbol not found: {symbol}", status_code=status)
        if status == 401:
            return AuthorizationError(
                f"Download for {symbol} unauthorized after session reset: {detail}",
                status_code=status,
            )
        return RemoteServiceError(
            f"Download for {symbol} failed with status {status}: {detail}",
            status_code=status,
        )
