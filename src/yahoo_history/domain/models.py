"""Core market data domain models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum

# Largest epoch bound accepted by the download endpoint; means "up to now".
UNBOUNDED_END = 2**63 - 1


class Frequency(StrEnum):
    """Bar interval codes used by the download endpoint."""

    DAILY = "d"
    WEEKLY = "wk"
    MONTHLY = "mo"

    @property
    def interval(self) -> str:
        return f"1{self.value}"


class TickKind(StrEnum):
    """Event series served by the download endpoint."""

    HISTORY = "history"
    DIVIDEND = "div"
    SPLIT = "split"


@dataclass(frozen=True)
class HistoryTick:
    """One price bar."""

    date: date
    open: float
    high: float
    low: float
    close: float
    adjusted_close: float
    volume: int


@dataclass(frozen=True)
class DividendTick:
    """One dividend payment."""

    date: date
    dividend: float


@dataclass(frozen=True)
class SplitTick:
    """One stock split: `after_split` new shares for `before_split` old shares."""

    date: date
    before_split: float
    after_split: float


Tick = HistoryTick | DividendTick | SplitTick
