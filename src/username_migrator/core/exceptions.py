"""Exception hierarchy for the username migrator."""

from typing import Any


class MigratorError(Exception):
    """Base error. Carries a human readable message and structured details."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigurationError(MigratorError):
    """Invalid application configuration."""


class ValidationError(MigratorError):
    """Invalid input supplied by the caller."""


class PatternError(ValidationError):
    """A custom URL pattern is not a valid regular expression."""


class RepositoryError(MigratorError):
    """A repository on disk could not be used."""


class RemoteConfigError(RepositoryError):
    """The repository's .git/config could not be read or written."""
