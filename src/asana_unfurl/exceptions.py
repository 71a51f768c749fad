"""
Custom exceptions for the Asana URL unfurling tool.

Errors raised by the API clients, the configuration layer and the
orchestrator all derive from UnfurlError so the CLI can report them
uniformly. The text transformer itself never raises these.
"""

from typing import Optional


class UnfurlError(Exception):
    """Base exception for all unfurling errors."""


class APIError(UnfurlError):
    """
    Raised when a remote API request fails.

    Attributes:
        status_code: HTTP status code of the failed response, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Raised when a token is rejected or lacks the required permissions."""


class NetworkError(APIError):
    """Raised when the remote API cannot be reached."""


class ConfigurationError(UnfurlError):
    """Raised when configuration is missing or cannot be read."""


class ValidationError(UnfurlError):
    """Raised when configuration or input values are invalid."""
