"""
Error kinds raised by the driver.

Every failure that crosses the driver boundary is a :class:`RepositoryError`.
The subclasses exist so callers and tests can discriminate the category while
still catching a single type.
"""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Raised when the driver cannot answer a request against the repository."""


class MissingPropertyError(RepositoryError):
    """Raised when a required configuration property is absent."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required property is not set: {key}")
        self.key = key


class ConfigurationError(RepositoryError):
    """Raised when a configuration file cannot be loaded."""


class UnparsableDateError(RepositoryError):
    """Raised when a lexical timestamp does not match any supported pattern."""

    def __init__(self, value: str) -> None:
        super().__init__(f"Could not parse date: {value}")
        self.value = value


class TransportError(RepositoryError):
    """Raised when an HTTP download fails."""


class TupleParseError(RepositoryError):
    """Raised when a tuple result document is malformed."""
