"""Domain models."""

from .models import (
    UNBOUNDED_END,
    DividendTick,
    Frequency,
    HistoryTick,
    SplitTick,
    Tick,
    TickKind,
)

__all__ = [
    "UNBOUNDED_END",
    "DividendTick",
    "Frequency",
    "HistoryTick",
    "SplitTick",
    "Tick",
    "TickKind",
]
