"""Historical prices, dividends and splits for one or many symbols."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import date, datetime, timedelta, tzinfo
from typing import Self
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from requests.structures import CaseInsensitiveDict

from yahoo_history.cancellation import CancellationToken
from yahoo_history.config import Settings
from yahoo_history.data.fetcher import AuthenticatedFetcher
from yahoo_history.data.parser import parse_lines
from yahoo_history.data.session import SessionProvider
from yahoo_history.domain.models import (
    UNBOUNDED_END,
    DividendTick,
    Frequency,
    HistoryTick,
    SplitTick,
    Tick,
    TickKind,
)
from yahoo_history.errors import (
    FetchCancelledError,
    PeriodError,
    SymbolNotFoundError,
    SymbolValidationError,
)

# Calendar dates are anchored at the US session close in the requested zone.
SESSION_CLOSE_HOUR = 16


class YahooHistory:
    """Configure a date range once, then request ticks for symbols.

    A single symbol (`str`) returns a list of ticks, or None when the service
    does not know the symbol. Any other sequence of symbols is fetched
    concurrently and returned as a case-insensitive mapping. The date range is
    plain instance state: set it before issuing requests, not while they run.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        ignore_empty_rows: bool | None = None,
        session_provider: SessionProvider | None = None,
        cancel_token: CancellationToken | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or Settings()
        self.ignore_empty_rows = (
            self.settings.ignore_empty_rows if ignore_empty_rows is None else ignore_empty_rows
        )
        self.cancel_token = cancel_token or CancellationToken()
        self.clock = clock
        self._owns_session_provider = session_provider is None
        self.session_provider = session_provider or SessionProvider(
            cookie_url=self.settings.cookie_url,
            crumb_url=self.settings.crumb_url,
            user_agent=self.settings.user_agent,
            timeout=self.settings.timeout,
            cancel_token=self.cancel_token,
        )
        self.fetcher = AuthenticatedFetcher(
            self.session_provider,
            download_url=self.settings.download_url,
            timeout=self.settings.timeout,
            cancel_token=self.cancel_token,
        )
        self.start = 0
        self.end = UNBOUNDED_END
        self.logger = logging.getLogger("yahoo_history.history")
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def period(self, start: int, end: int = UNBOUNDED_END) -> Self:
        """Set the range as inclusive epoch seconds (UTC)."""
        if start > int(self.clock()):
            raise PeriodError("start > now")
        if start > end:
            raise PeriodError("start > end")
        self.start = int(start)
        self.end = int(end)
        return self

    def period_since(self, duration: timedelta) -> Self:
        """Set the range to the trailing `duration` up to now."""
        return self.period(int(self.clock() - duration.total_seconds()))

    def period_between(self, tz: str | tzinfo, start: date, end: date | None = None) -> Self:
        """Set the range from calendar dates in the given time zone."""
        if isinstance(tz, str):
            try:
                zone: tzinfo = ZoneInfo(tz)
            except (ZoneInfoNotFoundError, ValueError) as exc:
                raise PeriodError(f"Unknown time zone: {tz!r}") from exc
        else:
            zone = tz
        start_seconds = _session_close_seconds(start, zone)
        end_seconds = UNBOUNDED_END if end is None else _session_close_seconds(end, zone)
        return self.period(start_seconds, end_seconds)

    def get_history(
        self,
        symbols: str | Sequence[str],
        frequency: Frequency | str = Frequency.DAILY,
    ) -> list[HistoryTick] | None | CaseInsensitiveDict:
        return self._get_ticks(symbols, TickKind.HISTORY, Frequency(frequency))

    def get_dividends(
        self, symbols: str | Sequence[str]
    ) -> list[DividendTick] | None | CaseInsensitiveDict:
        return self._get_ticks(symbols, TickKind.DIVIDEND, Frequency.DAILY)

    def get_splits(
        self, symbols: str | Sequence[str]
    ) -> list[SplitTick] | None | CaseInsensitiveDict:
        return self._get_ticks(symbols, TickKind.SPLIT, Frequency.DAILY)

    def get_ticks(
        self,
        symbols: str | Sequence[str],
        kind: TickKind | str,
        frequency: Frequency | str = Frequency.DAILY,
    ) -> list[Tick] | None | CaseInsensitiveDict:
        """Request any tick kind by name, as used by the CLI."""
        return self._get_ticks(symbols, TickKind(kind), Frequency(frequency))

    def close(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)
        if self._owns_session_provider:
            self.session_provider.close()

    def _get_ticks(
        self,
        symbols: str | Sequence[str] | None,
        kind: TickKind,
        frequency: Frequency,
    ) -> list[Tick] | None | CaseInsensitiveDict:
        # Capture the range so later reconfiguration only affects later calls.
        start, end = self.start, self.end
        if isinstance(symbols, str):
            return self._request_one(symbols, kind, frequency, start, end)
        return self._request_many(symbols, kind, frequency, start, end)

    def _request_one(
        self,
        symbol: str,
        kind: TickKind,
        frequency: Frequency,
        start: int,
        end: int,
    ) -> list[Tick] | None:
        _validate_symbol(symbol)
        try:
            response = self.fetcher.fetch(symbol, kind, start, end, frequency)
        except SymbolNotFoundError:
            self.logger.info('Symbol not found: "%s".', symbol)
            return None

        try:
            if response.encoding is None:
                response.encoding = "utf-8"
            lines = response.iter_lines(decode_unicode=True)
            return list(parse_lines(kind, lines, self.ignore_empty_rows, self.cancel_token))
        finally:
            response.close()

    def _request_many(
        self,
        symbols: Sequence[str] | None,
        kind: TickKind,
        frequency: Frequency,
        start: int,
        end: int,
    ) -> CaseInsensitiveDict:
        if symbols is None:
            raise SymbolValidationError("symbols is required.")
        requested = list(symbols)
        if not requested:
            raise SymbolValidationError("Empty list.")
        for symbol in requested:
            _validate_symbol(symbol)
        duplicates = _case_insensitive_duplicates(requested)
        if duplicates:
            quoted = ", ".join(f'"{symbol}"' for symbol in duplicates)
            raise SymbolValidationError(f"Duplicate symbol(s): {quoted}.")

        executor = self._get_executor()
        futures: list[Future] = [
            executor.submit(self._request_one, symbol, kind, frequency, start, end)
            for symbol in requested
        ]
        wait(futures)

        failures = [future.exception() for future in futures if future.exception() is not None]
        if failures:
            if self.cancel_token.cancelled:
                raise FetchCancelledError("Batch request cancelled.") from failures[0]
            raise failures[0]

        results: CaseInsensitiveDict = CaseInsensitiveDict()
        for symbol, future in zip(requested, futures):
            results[symbol] = future.result()
        return results

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.settings.max_workers,
                    thread_name_prefix="yahoo-history",
                )
            return self._executor


def _validate_symbol(symbol: object) -> None:
    if symbol is None:
        raise SymbolValidationError("symbol is required.")
    if not isinstance(symbol, str):
        raise SymbolValidationError(f"symbol must be a string, got {type(symbol).__name__}.")
    if not symbol.strip():
        raise SymbolValidationError("Empty string.")


def _case_insensitive_duplicates(symbols: list[str]) -> list[str]:
    groups: dict[str, list[str]] = {}
    for symbol in symbols:
        groups.setdefault(symbol.casefold(), []).append(symbol)
    colliding = [symbol for group in groups.values() if len(group) > 1 for symbol in group]
    return list(dict.fromkeys(colliding))


def _session_close_seconds(day: date, zone: tzinfo) -> int:
    return int(datetime(day.year, day.month, day.day, SESSION_CLOSE_HOUR, tzinfo=zone).timestamp())
