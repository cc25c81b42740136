"""Session handling, download and CSV parsing for the history endpoint."""

from .fetcher import AuthenticatedFetcher
from .frames import ticks_to_frame
from .parser import parse_lines, parse_row
from .session import SessionProvider, YahooSession

__all__ = [
    "AuthenticatedFetcher",
    "SessionProvider",
    "YahooSession",
    "parse_lines",
    "parse_row",
    "ticks_to_frame",
]
