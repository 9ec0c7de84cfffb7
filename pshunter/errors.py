"""
PS Hunter - Error Taxonomy

Only ValidationError, ConfigurationError and the provider errors ever reach
a caller. StorageError is raised by storage backends and always absorbed by
the stores that use them.
"""

from __future__ import annotations


class PSHunterError(Exception):
    """Base class for every error raised by the package."""


class ValidationError(PSHunterError):
    """Caller input rejected before any I/O (e.g. no regions selected)."""


class ConfigurationError(PSHunterError):
    """A mandatory credential or setting is missing."""


class ProviderError(PSHunterError):
    """Failure reported by the AI price-search provider."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientProviderError(ProviderError):
    """Rate-limit or overload signal. Retried within the retry budget."""


class TerminalProviderError(ProviderError):
    """Provider failure that will not resolve by waiting."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.attempts = attempts


class SchemaViolation(ProviderError):
    """Provider response was empty or did not match the output schema."""


class StorageError(PSHunterError):
    """Local key-value storage could not be read or written."""
