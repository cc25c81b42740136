"""Tabular view of parsed ticks."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict

import pandas as pd

from yahoo_history.domain.models import Tick


def ticks_to_frame(ticks: Sequence[Tick] | None) -> pd.DataFrame:
    """Return ticks as a DataFrame with a datetime index named `date`."""
    if not ticks:
        return pd.DataFrame(index=pd.DatetimeIndex([], name="date"))
    frame = pd.DataFrame([asdict(tick) for tick in ticks])
    frame.index = pd.to_datetime(frame.pop("date"))
    frame.index.name = "date"
    return frame
