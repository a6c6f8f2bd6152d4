"""Append-only audit log of migration attempts.

Each migration run writes one text file under the logs directory: a header
block, one entry block per remote migration attempt (appended in the order
the attempts complete) and a summary footer.
"""

import asyncio
from datetime import datetime, timezone
from pathlib import Path

import structlog

from username_migrator.core.models.migration import MigrationLog, MigrationLogEntry

logger = structlog.get_logger(__name__)

RULE_WIDTH = 60


def generate_log_filename(now: datetime | None = None, suffix: int = 0) -> str:
    """Timestamped log file name, e.g. ``migration-2026-10-18_09-30-00.log``."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%d_%H-%M-%S")
    if suffix:
        stamp = f"{stamp}-{suffix}"
    return f"migration-{stamp}.log"


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_log_entry(entry: MigrationLogEntry) -> str:
    status = "SUCCESS" if entry.success else "FAILED"
    lines = [
        f"[{format_timestamp(entry.timestamp)}] {status}",
        f"  Repository: {entry.repository_path}",
        f"  Remote: {entry.remote_name}",
        f"  Old URL: {entry.old_url}",
        f"  New URL: {entry.new_url}",
    ]
    if entry.error:
        lines.append(f"  Error: {entry.error}")
    return "\n".join(lines)


def format_log_header(log: MigrationLog) -> str:
    lines = [
        "=" * RULE_WIDTH,
        "GitHub Username Migration Log",
        "=" * RULE_WIDTH,
        "",
        f"Started: {format_timestamp(log.started_at)}",
        f"Old Username: {log.old_identifier}",
        f"New Username: {log.new_identifier}",
        f"Scan Root: {log.scan_root}",
        "",
        "-" * RULE_WIDTH,
        "",
    ]
    return "\n".join(lines)


def format_log_footer(log: MigrationLog) -> str:
    ended = format_timestamp(log.ended_at) if log.ended_at else "In Progress"
    lines = [
        "",
        "-" * RULE_WIDTH,
        "",
        "Summary",
        "-------",
        f"Ended: {ended}",
        f"Total Migrations: {log.summary.total_migrations}",
        f"Successful Migrations: {log.summary.successful_migrations}",
        f"Failed Migrations: {log.summary.failed_migrations}",
        "",
        "=" * RULE_WIDTH,
    ]
    return "\n".join(lines)


def _create_exclusive(path: Path, content: str) -> None:
    with open(path, "x", encoding="utf-8") as handle:
        handle.write(content)


def _append(path: Path, content: str) -> None:
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(content)


class MigrationLogger:
    """Writes the audit log for one migration run.

    A single writer: entries are appended sequentially, never concurrently.
    """

    def __init__(
        self,
        logs_dir: str | Path,
        old_identifier: str,
        new_identifier: str,
        scan_root: str,
    ) -> None:
        self._logs_dir = Path(logs_dir)
        self._log = MigrationLog(
            old_identifier=old_identifier,
            new_identifier=new_identifier,
            scan_root=scan_root,
        )
        self._log_path = self._logs_dir / generate_log_filename(self._log.started_at)
        self._initialized = False

    @property
    def log_path(self) -> Path:
        return self._log_path

    async def initialize(self) -> None:
        """Create the logs directory and write the header.

        Never overwrites an existing log: a numeric suffix is added to the
        file name until an unused one is found.
        """
        if self._initialized:
            return

        await asyncio.to_thread(self._logs_dir.mkdir, parents=True, exist_ok=True)

        header = format_log_header(self._log)
        suffix = 0
        while True:
            try:
                await asyncio.to_thread(_create_exclusive, self._log_path, header)
                break
            except FileExistsError:
                suffix += 1
                self._log_path = self._logs_dir / generate_log_filename(self._log.started_at, suffix)

        self._initialized = True
        logger.info("Audit log created", path=str(self._log_path))

    async def log_success(
        self,
        repository_path: str,
        remote_name: str,
        old_url: str,
        new_url: str,
    ) -> None:
        entry = MigrationLogEntry(
            repository_path=repository_path,
            remote_name=remote_name,
            old_url=old_url,
            new_url=new_url,
            success=True,
        )
        await self._append_entry(entry)
        self._log.summary.successful_migrations += 1
        self._log.summary.total_migrations += 1

    async def log_failure(
        self,
        repository_path: str,
        remote_name: str,
        old_url: str,
        new_url: str,
        error: str,
    ) -> None:
        entry = MigrationLogEntry(
            repository_path=repository_path,
            remote_name=remote_name,
            old_url=old_url,
            new_url=new_url,
            success=False,
            error=error,
        )
        await self._append_entry(entry)
        self._log.summary.failed_migrations += 1
        self._log.summary.total_migrations += 1

    async def _append_entry(self, entry: MigrationLogEntry) -> None:
        if not self._initialized:
            await self.initialize()

        self._log.entries.append(entry)
        await asyncio.to_thread(_append, self._log_path, format_log_entry(entry) + "\n\n")

    async def finalize(self) -> MigrationLog:
        """Write the summary footer and return the completed log."""
        if not self._initialized:
            await self.initialize()

        self._log.ended_at = datetime.now(timezone.utc)
        await asyncio.to_thread(_append, self._log_path, format_log_footer(self._log))

        logger.info(
            "Audit log finalized",
            path=str(self._log_path),
            successful=self._log.summary.successful_migrations,
            failed=self._log.summary.failed_migrations,
        )
        return self.get_log()

    def get_log(self) -> MigrationLog:
        return self._log.model_copy(deep=True)
