"""Map download CSV rows to typed ticks."""

from __future__ import annotations

import csv
import math
import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from datetime import date

from yahoo_history.cancellation import CancellationToken
from yahoo_history.domain.models import DividendTick, HistoryTick, SplitTick, Tick, TickKind
from yahoo_history.errors import TickParseError

_EMPTY_VALUES = {"", "null"}


def parse_row(
    kind: TickKind,
    fields: Sequence[str],
    ignore_empty_rows: bool = False,
) -> Tick | None:
    """Parse one CSV record into a tick of the given kind.

    Returns None for blank lines, and for rows without any values when
    `ignore_empty_rows` is set. Otherwise such rows become ticks with `nan`
    prices so the caller still sees the date.
    """
    values = [field.strip() for field in fields]
    if not values or all(not value for value in values):
        return None

    row_parser, expected = _ROW_PARSERS[TickKind(kind)]
    if len(values) != expected:
        raise TickParseError(
            f"{kind} row has {len(values)} fields, expected {expected}: {','.join(values)}"
        )
    if ignore_empty_rows and all(_is_empty(value) for value in values[1:]):
        return None
    try:
        return row_parser(values)
    except ValueError as exc:
        raise TickParseError(f"Malformed {kind} row: {','.join(values)}") from exc


def parse_lines(
    kind: TickKind,
    lines: Iterable[str],
    ignore_empty_rows: bool = False,
    cancel_token: CancellationToken | None = None,
) -> Iterator[Tick]:
    """Yield ticks from CSV text lines in file order. The first line is a header."""
    reader = csv.reader(lines)
    next(reader, None)
    for fields in reader:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        tick = parse_row(kind, fields, ignore_empty_rows)
        if tick is not None:
            yield tick


def _parse_history(values: list[str]) -> HistoryTick:
    return HistoryTick(
        date=date.fromisoformat(values[0]),
        open=_number(values[1]),
        high=_number(values[2]),
        low=_number(values[3]),
        close=_number(values[4]),
        adjusted_close=_number(values[5]),
        volume=_volume(values[6]),
    )


def _parse_dividend(values: list[str]) -> DividendTick:
    return DividendTick(date=date.fromisoformat(values[0]), dividend=_number(values[1]))


def _parse_split(values: list[str]) -> SplitTick:
    ratio = values[1]
    if _is_empty(ratio):
        return SplitTick(
            date=date.fromisoformat(values[0]), before_split=math.nan, after_split=math.nan
        )
    parts = re.split(r"[:/]", ratio)
    if len(parts) != 2:
        raise ValueError(f"invalid split ratio {ratio!r}")
    # "4:1" reads as 4 new shares for every 1 old share.
    return SplitTick(
        date=date.fromisoformat(values[0]),
        before_split=float(parts[1]),
        after_split=float(parts[0]),
    )


def _is_empty(value: str) -> bool:
    return value.strip().lower() in _EMPTY_VALUES


def _number(value: str) -> float:
    if _is_empty(value):
        return math.nan
    return float(value)


def _volume(value: str) -> int:
    if _is_empty(value):
        return 0
    return int(float(value))


_ROW_PARSERS: dict[TickKind, tuple[Callable[[list[str]], Tick], int]] = {
    TickKind.HISTORY: (_parse_history, 7),
    TickKind.DIVIDEND: (_parse_dividend, 2),
    TickKind.SPLIT: (_parse_split, 2),
}
