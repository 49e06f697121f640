"""
Image Relay Errors

Every failure the relay can raise. Intermediate layers never catch these;
the HTTP boundary maps them to plain-text responses using ``status_code``.
"""


class RelayError(Exception):
    """Base class for relay failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamFetchError(RelayError):
    """Remote API unreachable or returned a non-success status."""


class NotFoundError(RelayError):
    """No catalog entry or variant matches the request."""

    status_code = 404


class ConfigurationError(RelayError):
    """A required binding or credential is missing."""


class CacheReadError(RelayError):
    """A stored cache value is missing or corrupt."""
