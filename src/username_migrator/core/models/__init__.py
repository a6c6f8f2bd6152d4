"""Domain models for the username migrator."""

from username_migrator.core.models.migration import (
    DryRunReport,
    MigrateResult,
    MigrationLog,
    MigrationLogEntry,
    MigrationLogSummary,
    MigrationProgress,
    MigrationResult,
    MigrationSummary,
    RemoteChange,
    RemoteOutcome,
    RepositoryChanges,
)
from username_migrator.core.models.repository import (
    MatchedRemote,
    MatchedRepository,
    Remote,
    Repository,
)
from username_migrator.core.models.scan import (
    ScanError,
    ScanEvent,
    ScanEventType,
    ScanProgress,
    ScanResult,
)

__all__ = [
    "Remote",
    "Repository",
    "MatchedRemote",
    "MatchedRepository",
    "ScanEvent",
    "ScanEventType",
    "ScanError",
    "ScanProgress",
    "ScanResult",
    "RemoteOutcome",
    "MigrationResult",
    "MigrationProgress",
    "MigrationLogEntry",
    "MigrationLogSummary",
    "MigrationLog",
    "MigrateResult",
    "DryRunReport",
    "RemoteChange",
    "RepositoryChanges",
    "MigrationSummary",
]
