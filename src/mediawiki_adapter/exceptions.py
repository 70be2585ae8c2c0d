"""
Exception hierarchy for the MediaWiki request engine
"""

from typing import Optional


class MediaWikiAdapterError(Exception):
    """Base class for all errors raised by the adapter"""
    pass


class ConfigurationError(MediaWikiAdapterError):
    """Raised when configuration is invalid, incomplete, or a request cannot be built from it"""
    pass


class EnvironmentError(MediaWikiAdapterError):
    """Raised when required environment variables are missing"""
    pass


class TransportError(MediaWikiAdapterError):
    """Raised when the HTTP exchange itself fails (connection, timeout, TLS)"""
    pass


class MalformedResponse(MediaWikiAdapterError):
    """Raised when a response body cannot be decoded as JSON"""

    def __init__(self, message: str, text: str = ""):
        super().__init__(message)
        self.text = text


class OverloadExceeded(MediaWikiAdapterError):
    """Raised when the server keeps reporting maxlag after every permitted retry"""

    def __init__(self, attempts: int, cumulative_lag: int):
        super().__init__(
            f"Max attempts reached [MAXLAG] after {attempts} attempts, "
            f"cumulative maxlag {cumulative_lag}"
        )
        self.attempts = attempts
        self.cumulative_lag = cumulative_lag
        self.attempts_remaining = 0


class RequestCancelled(MediaWikiAdapterError):
    """Raised when a backoff wait is interrupted by the cancellation event"""
    pass


class BusinessError(MediaWikiAdapterError):
    """Raised by helpers when the API answers with a result they cannot use"""

    def __init__(self, message: str, response: Optional[dict] = None):
        super().__init__(message)
        self.response = response
