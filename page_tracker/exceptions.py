"""Exception classes for the page_tracker package.

This module defines custom exceptions used throughout the page_tracker package
for better error handling and debugging.
"""

from typing import Optional, Union


class PageTrackerException(Exception):
    """Base exception for all page_tracker errors.

    Catching this exception will catch all page_tracker-specific errors.
    """
    pass


class ConfigError(PageTrackerException):
    """Raised when the configuration is missing or invalid.

    This can occur due to:
    - A missing or empty API token, account id or namespace id
    - An output path that is not usable
    - Conflicting or absent output options
    """
    pass


class AuthError(PageTrackerException):
    """Raised when the KV API rejects the credentials (HTTP 401/403)."""
    pass


class NotFoundError(PageTrackerException):
    """Raised when the namespace or a key does not exist (HTTP 404).

    For a single key this usually means the key was deleted between
    listing and fetching.
    """
    pass


class TransportError(PageTrackerException):
    """Raised when a request to the KV API fails.

    This can occur due to:
    - Network connectivity issues or timeouts
    - Server errors (5xx status codes)
    - A response envelope that is malformed or reports failure
    """
    pass


class ParseError(PageTrackerException):
    """Raised when a stored value is not a non-negative base-10 integer."""

    def __init__(self, key: str, value: Union[str, bytes], message: Optional[str] = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Value for key {key!r} is not a view count: {value!r}")


class OutputError(PageTrackerException):
    """Raised when the CSV file cannot be written to its target path."""
    pass
