"""Custom exceptions for clearer error handling across the package."""

from __future__ import annotations


class YahooHistoryError(Exception):
    """Base exception for all package-specific errors."""


class ConfigError(YahooHistoryError):
    """Raised when environment configuration is invalid or missing."""


class InputError(YahooHistoryError, ValueError):
    """Raised when caller arguments are invalid. No network call is made."""


class SymbolValidationError(InputError):
    """Raised for null, empty or duplicate symbols."""


class PeriodError(InputError):
    """Raised when a date range is inverted or starts in the future."""


class DataProviderError(YahooHistoryError):
    """Raised when market data retrieval fails."""


class HandshakeError(DataProviderError):
    """Raised when the session cookie or crumb cannot be obtained."""


class RemoteServiceError(DataProviderError):
    """Raised when the download endpoint fails or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthorizationError(RemoteServiceError):
    """Raised when a download is still unauthorized after a session reset."""


class SymbolNotFoundError(RemoteServiceError):
    """Raised when the service does not recognize a symbol."""


class TickParseError(DataProviderError):
    """Raised when a CSV row cannot be mapped to a tick."""


class FetchCancelledError(YahooHistoryError):
    """Raised when a cancellation request is observed."""
