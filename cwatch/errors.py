"""
errors.py
Error types raised by the watcher core. None of them is fatal: each is caught
at the operation boundary (poll, sample-one, load-pool) and shown inline.
"""


class WatcherError(Exception):
    pass


class NetworkError(WatcherError):
    """Transport failure or non-success HTTP status."""


class ApiError(WatcherError):
    """The API answered with an ``error`` payload."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ConfigError(WatcherError):
    """Missing or invalid credential, config value or candidate pool."""
