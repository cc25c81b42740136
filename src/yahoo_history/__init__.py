"""Yahoo Finance price, dividend and split history client."""

from .cancellation import CancellationToken
from .config import Settings
from .domain.models import (
    UNBOUNDED_END,
    DividendTick,
    Frequency,
    HistoryTick,
    SplitTick,
    Tick,
    TickKind,
)
from .history import YahooHistory

__all__ = [
    "UNBOUNDED_END",
    "CancellationToken",
    "DividendTick",
    "Frequency",
    "HistoryTick",
    "Settings",
    "SplitTick",
    "Tick",
    "TickKind",
    "YahooHistory",
]
