"""Migration services for the username migrator."""

from username_migrator.services.audit_log import MigrationLogger
from username_migrator.services.migration import (
    MigrateOptions,
    MigrationExecutor,
    dry_run_validate,
    get_migration_summary,
    migrate,
)

__all__ = [
    "MigrationLogger",
    "MigrationExecutor",
    "MigrateOptions",
    "migrate",
    "dry_run_validate",
    "get_migration_summary",
]
