"""Core domain models and interfaces for the username migrator."""

from username_migrator.core.cancellation import CancellationToken
from username_migrator.core.exceptions import (
    ConfigurationError,
    MigratorError,
    PatternError,
    RemoteConfigError,
    RepositoryError,
    ValidationError,
)
from username_migrator.core.models import (
    DryRunReport,
    MatchedRemote,
    MatchedRepository,
    MigrateResult,
    MigrationLog,
    MigrationProgress,
    MigrationResult,
    Remote,
    RemoteOutcome,
    Repository,
    ScanError,
    ScanProgress,
    ScanResult,
)

__all__ = [
    # Models
    "Remote",
    "Repository",
    "MatchedRemote",
    "MatchedRepository",
    "ScanError",
    "ScanProgress",
    "ScanResult",
    "RemoteOutcome",
    "MigrationResult",
    "MigrationProgress",
    "MigrationLog",
    "MigrateResult",
    "DryRunReport",
    # Cancellation
    "CancellationToken",
    # Exceptions
    "MigratorError",
    "ConfigurationError",
    "ValidationError",
    "PatternError",
    "RepositoryError",
    "RemoteConfigError",
]
