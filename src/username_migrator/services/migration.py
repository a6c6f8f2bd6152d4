"""Migration executor: applies accepted remote rewrites to repositories."""

import asyncio
import os
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog
from pydantic import BaseModel, ConfigDict

from username_migrator.core.cancellation import CancellationToken
from username_migrator.core.models.migration import (
    DryRunReport,
    MigrateResult,
    MigrationLog,
    MigrationProgress,
    MigrationResult,
    MigrationSummary,
    RemoteChange,
    RemoteOutcome,
    RepositoryChanges,
)
from username_migrator.core.models.repository import MatchedRepository
from username_migrator.git.config_file import set_remote_url
from username_migrator.git.url_matcher import CustomPattern, select_match_mode
from username_migrator.services.audit_log import MigrationLogger
from username_migrator.utils.callbacks import notify

logger = structlog.get_logger(__name__)

MigrationProgressCallback = Callable[[MigrationProgress], Awaitable[None] | None]


class AuditLog(Protocol):
    """What the executor needs from an audit log."""

    async def log_success(
        self, repository_path: str, remote_name: str, old_url: str, new_url: str
    ) -> None: ...

    async def log_failure(
        self, repository_path: str, remote_name: str, old_url: str, new_url: str, error: str
    ) -> None: ...

    async def finalize(self) -> MigrationLog: ...


class MigrateOptions(BaseModel):
    """Options for ``migrate``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    logs_dir: str
    scan_root: str = ""
    custom_pattern: CustomPattern | None = None
    on_progress: MigrationProgressCallback | None = None
    cancellation: CancellationToken | None = None


class MigrationExecutor:
    """Rewrites matched remotes repository by repository.

    A failing remote is recorded and the batch moves on. Cancellation is
    checked before each repository; a repository that has started always
    runs to completion.
    """

    def __init__(self, audit_log: AuditLog, cancellation: CancellationToken | None = None) -> None:
        self._audit_log = audit_log
        self._cancellation = cancellation or CancellationToken()

    async def migrate_repository(self, repository: MatchedRepository) -> MigrationResult:
        """Apply every matched remote of one repository, in order."""
        outcomes: list[RemoteOutcome] = []

        for matched in repository.matched_remotes:
            remote = matched.remote
            try:
                await set_remote_url(repository.path, remote.name, matched.new_url)
            except Exception as e:
                error = str(e) or type(e).__name__
                logger.warning(
                    "Remote migration failed",
                    repository=repository.path,
                    remote=remote.name,
                    error=error,
                )
                await self._audit_log.log_failure(
                    repository.path, remote.name, remote.url, matched.new_url, error
                )
                outcomes.append(
                    RemoteOutcome(
                        remote_name=remote.name,
                        old_url=remote.url,
                        new_url=matched.new_url,
                        success=False,
                        error=error,
                    )
                )
                continue

            logger.info(
                "Remote migrated",
                repository=repository.path,
                remote=remote.name,
                new_url=matched.new_url,
            )
            await self._audit_log.log_success(repository.path, remote.name, remote.url, matched.new_url)
            outcomes.append(
                RemoteOutcome(
                    remote_name=remote.name,
                    old_url=remote.url,
                    new_url=matched.new_url,
                    success=True,
                )
            )

        return MigrationResult(repository=repository, results=outcomes)

    async def run(
        self,
        repositories: list[MatchedRepository],
        on_progress: MigrationProgressCallback | None = None,
    ) -> list[MigrationResult]:
        """Migrate all repositories, reporting progress along the way."""
        total = len(repositories)
        results: list[MigrationResult] = []

        await notify(on_progress, MigrationProgress(total=total))

        for repository in repositories:
            if self._cancellation.is_cancelled():
                logger.info("Migration cancelled", completed=len(results), total=total)
                break

            await notify(
                on_progress,
                MigrationProgress(
                    total=total,
                    completed=len(results),
                    current_repository=repository.path,
                    results=list(results),
                ),
            )

            results.append(await self.migrate_repository(repository))

            await notify(
                on_progress,
                MigrationProgress(total=total, completed=len(results), results=list(results)),
            )

        return results


async def migrate(
    repositories: list[MatchedRepository],
    old_owner: str,
    new_owner: str,
    options: MigrateOptions,
) -> MigrateResult:
    """Migrate the accepted repositories and write an audit log.

    The log is written under ``options.logs_dir``; its header records the
    owners (or the custom pattern, when one is given).
    """
    mode = select_match_mode(old_owner, new_owner, options.custom_pattern)
    cancellation = options.cancellation or CancellationToken()

    audit_log = MigrationLogger(
        logs_dir=options.logs_dir,
        old_identifier=mode.old_identifier,
        new_identifier=mode.new_identifier,
        scan_root=options.scan_root,
    )
    await audit_log.initialize()

    executor = MigrationExecutor(audit_log, cancellation=cancellation)
    results = await executor.run(repositories, on_progress=options.on_progress)
    log = await audit_log.finalize()

    return MigrateResult(
        results=results,
        log=log,
        log_path=str(audit_log.log_path),
        cancelled=cancellation.is_cancelled() and len(results) < len(repositories),
    )


def _is_accessible(path: str) -> bool:
    try:
        os.stat(path)
    except OSError:
        return False
    return True


async def dry_run_validate(repositories: list[MatchedRepository]) -> DryRunReport:
    """Validate a migration without writing anything."""
    issues: list[str] = []

    for repository in repositories:
        if not await asyncio.to_thread(_is_accessible, repository.path):
            issues.append(f"Repository not accessible: {repository.path}")
            continue

        for matched in repository.matched_remotes:
            if not matched.new_url.strip():
                issues.append(f"Invalid new URL for {repository.path}:{matched.remote.name}")

    return DryRunReport(valid=not issues, issues=issues)


def get_migration_summary(repositories: list[MatchedRepository]) -> MigrationSummary:
    """Summarize what a migration would change."""
    changes = [
        RepositoryChanges(
            path=repository.path,
            remotes=[
                RemoteChange(name=m.remote.name, old_url=m.remote.url, new_url=m.new_url)
                for m in repository.matched_remotes
            ],
        )
        for repository in repositories
    ]
    return MigrationSummary(
        total_repositories=len(repositories),
        total_remotes=sum(len(change.remotes) for change in changes),
        repositories=changes,
    )

