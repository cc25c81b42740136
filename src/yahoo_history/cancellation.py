"""Cooperative cancellation shared by every network step of a request."""

from __future__ import annotations

import threading

from yahoo_history.errors import FetchCancelledError


class CancellationToken:
    """Thread-safe cancel flag checked before each handshake, download and parsed row."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise FetchCancelledError("Request cancelled.")
