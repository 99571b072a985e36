"""Error types raised by ListenLab."""


class ListenLabError(Exception):
    """Base exception for ListenLab errors."""


class ConfigurationError(ListenLabError, ValueError):
    """Raised when a required credential or setting is missing.

    Surfaced before any request to the transcript service is attempted.
    """


class ServiceError(ListenLabError, RuntimeError):
    """Raised when the transcript service fails or returns unusable data."""
