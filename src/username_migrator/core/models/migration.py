"""Migration-related models."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from username_migrator.core.models.repository import MatchedRepository


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RemoteOutcome(BaseModel):
    """Outcome of rewriting one remote."""

    remote_name: str
    old_url: str
    new_url: str
    success: bool
    error: str | None = None


class MigrationResult(BaseModel):
    """Per-repository migration outcome."""

    repository: MatchedRepository
    results: list[RemoteOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return all(outcome.success for outcome in self.results)


class MigrationProgress(BaseModel):
    """Progress reported by the executor."""

    total: int
    completed: int = 0
    current_repository: str | None = None
    results: list[MigrationResult] = Field(default_factory=list)


class MigrationLogEntry(BaseModel):
    """One audit log entry (a single remote migration attempt)."""

    timestamp: datetime = Field(default_factory=_utcnow)
    repository_path: str
    remote_name: str
    old_url: str
    new_url: str
    success: bool
    error: str | None = None


class MigrationLogSummary(BaseModel):
    total_migrations: int = 0
    successful_migrations: int = 0
    failed_migrations: int = 0


class MigrationLog(BaseModel):
    """An audit log session."""

    started_at: datetime = Field(default_factory=_utcnow)
    ended_at: datetime | None = None
    old_identifier: str
    new_identifier: str
    scan_root: str
    entries: list[MigrationLogEntry] = Field(default_factory=list)
    summary: MigrationLogSummary = Field(default_factory=MigrationLogSummary)


class MigrateResult(BaseModel):
    """Everything returned by a migration run."""

    results: list[MigrationResult] = Field(default_factory=list)
    log: MigrationLog
    log_path: str
    cancelled: bool = False


class DryRunReport(BaseModel):
    """Outcome of dry-run validation."""

    valid: bool
    issues: list[str] = Field(default_factory=list)


class RemoteChange(BaseModel):
    name: str
    old_url: str
    new_url: str


class RepositoryChanges(BaseModel):
    path: str
    remotes: list[RemoteChange] = Field(default_factory=list)


class MigrationSummary(BaseModel):
    """Preview of what a migration would change."""

    total_repositories: int = 0
    total_remotes: int = 0
    repositories: list[RepositoryChanges] = Field(default_factory=list)
