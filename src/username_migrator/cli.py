"""CLI for the GitHub username migrator."""

import asyncio
import signal
import sys
from contextlib import contextmanager
from pathlib import Path

import click
from pydantic import ValidationError

from username_migrator import __version__
from username_migrator.config.logging import configure_logging
from username_migrator.config.settings import Settings, get_settings
from username_migrator.core.cancellation import CancellationToken
from username_migrator.core.exceptions import ConfigurationError, MigratorError, PatternError
from username_migrator.core.models import (
    MatchedRepository,
    MigrateResult,
    MigrationProgress,
    ScanProgress,
    ScanResult,
)
from username_migrator.git.scanner import ScanOptions, count_repositories, scan_for_repositories
from username_migrator.git.url_matcher import CustomPattern, select_match_mode
from username_migrator.services.migration import (
    MigrateOptions,
    dry_run_validate,
    get_migration_summary,
    migrate,
)


def run_async(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


@contextmanager
def cancel_on_interrupt(token: CancellationToken):
    """Turn Ctrl-C into a cooperative cancellation while the block runs."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        installed = True
    except (NotImplementedError, RuntimeError):
        # No signal handlers on this platform or thread
        installed = False
    try:
        yield token
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def _echo_scan_progress(progress: ScanProgress) -> None:
    if not sys.stderr.isatty():
        return
    click.echo(
        f"\r  {progress.directories_scanned} dirs scanned, "
        f"{progress.repositories_found} repos, {progress.matched_count} matched",
        nl=False,
        err=True,
    )


def _echo_migration_progress(progress: MigrationProgress) -> None:
    if progress.current_repository:
        click.echo(f"  [{progress.completed + 1}/{progress.total}] {progress.current_repository}")


def _resolve_root(root: str | None, default_root: str) -> Path:
    root_path = Path(root or default_root).expanduser().resolve()
    if not root_path.is_dir():
        raise ConfigurationError(
            f"Scan root is not a directory: {root_path}",
            details={"root": str(root_path)},
        )
    return root_path


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        problems = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        raise ConfigurationError(f"Invalid configuration: {problems}", details={"errors": e.errors()}) from e


@click.group()
@click.version_option(__version__, "--version", prog_name="github-username-migrator")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """Migrate GitHub usernames in local git remotes."""
    try:
        settings = _load_settings()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, json_logs=settings.json_logs)


@cli.command()
@click.option("--old", "-o", "old_owner", help="GitHub username to replace")
@click.option("--new", "-n", "new_owner", help="New GitHub username")
@click.option("--root", "-r", type=click.Path(file_okay=False), help="Scan root (default: home directory)")
@click.option("--exclude", "-e", multiple=True, help="Exclude dirs matching glob (repeatable)")
@click.option("--pattern-from", help="Custom regex to match URLs")
@click.option("--pattern-to", help="Replacement ($1, $2 for groups)")
@click.option("--max-depth", type=click.IntRange(min=0), default=None, help="Maximum scan depth")
@click.option("--apply", "-a", "apply_changes", is_flag=True, help="Actually apply changes")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def run(
    old_owner: str | None,
    new_owner: str | None,
    root: str | None,
    exclude: tuple[str, ...],
    pattern_from: str | None,
    pattern_to: str | None,
    max_depth: int | None,
    apply_changes: bool,
    yes: bool,
) -> None:
    """Scan for repositories and migrate their remotes.

    Runs as a dry run unless --apply is given.
    """
    settings = get_settings()

    if (pattern_from is None) != (pattern_to is None):
        raise click.UsageError("--pattern-from and --pattern-to must be used together")

    custom_pattern = None
    if pattern_from is not None:
        custom_pattern = CustomPattern(from_pattern=pattern_from, to_template=pattern_to)
        old_owner = old_owner or ""
        new_owner = new_owner or ""
    else:
        old_owner = old_owner or click.prompt("Old GitHub username")
        new_owner = new_owner or click.prompt("New GitHub username")
        if old_owner == new_owner:
            raise click.UsageError("Old and new username are identical")

    try:
        select_match_mode(old_owner, new_owner, custom_pattern)
    except PatternError as e:
        raise click.BadParameter(str(e), param_hint="--pattern-from") from e

    try:
        root_path = _resolve_root(root, settings.default_scan_root)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    token = CancellationToken()

    async def _scan() -> ScanResult:
        with cancel_on_interrupt(token):
            return await scan_for_repositories(
                root_path,
                old_owner,
                new_owner,
                ScanOptions(
                    max_depth=max_depth if max_depth is not None else settings.max_depth,
                    exclude_patterns=list(exclude),
                    custom_pattern=custom_pattern,
                    on_progress=_echo_scan_progress,
                    cancellation=token,
                    progress_interval=settings.progress_interval,
                ),
            )

    async def _migrate(repositories: list[MatchedRepository]) -> MigrateResult:
        with cancel_on_interrupt(token):
            return await migrate(
                repositories,
                old_owner,
                new_owner,
                MigrateOptions(
                    logs_dir=str(settings.logs_dir),
                    scan_root=str(root_path),
                    custom_pattern=custom_pattern,
                    on_progress=_echo_migration_progress,
                    cancellation=token,
                ),
            )

    try:
        click.echo(f"Scanning {root_path} for git repositories...")
        scan_result = run_async(_scan())
        if sys.stderr.isatty():
            click.echo(err=True)

        click.echo(
            f"Scanned {scan_result.directories_scanned} directories "
            f"({scan_result.directories_skipped} skipped) in {scan_result.elapsed_ms / 1000:.1f}s, "
            f"found {scan_result.repositories_found} repositories"
        )
        if scan_result.errors:
            click.echo(f"{len(scan_result.errors)} paths could not be scanned (use -v for details)")
        if scan_result.cancelled:
            click.echo("Scan cancelled.")
            sys.exit(130)

        repositories = scan_result.matched_repositories
        if not repositories:
            click.echo("No matching repositories found.")
            sys.exit(0)

        summary = get_migration_summary(repositories)
        click.echo(f"\n{summary.total_remotes} remotes in {summary.total_repositories} repositories will change:\n")
        for repo in summary.repositories:
            click.echo(f"  {repo.path}")
            for remote in repo.remotes:
                click.echo(f"    {remote.name}: {remote.old_url}")
                click.echo(f"    {' ' * len(remote.name)}  -> {remote.new_url}")

        if not apply_changes:
            report = run_async(dry_run_validate(repositories))
            for issue in report.issues:
                click.echo(f"  ! {issue}")
            click.echo("\nDry run: no changes made. Re-run with --apply to migrate.")
            sys.exit(0 if report.valid else 1)

        # Prompted outside the signal handler so Ctrl-C aborts the prompt
        if not yes and not click.confirm("\nApply these changes?", default=False):
            click.echo("Aborted.")
            sys.exit(1)

        outcome = run_async(_migrate(repositories))
    except MigratorError as e:
        raise click.ClickException(str(e)) from e

    log_summary = outcome.log.summary
    click.echo(f"\nMigrated {log_summary.successful_migrations} remotes, {log_summary.failed_migrations} failed")
    for result in outcome.results:
        for remote in result.results:
            if not remote.success:
                click.echo(f"  FAILED {result.repository.path} [{remote.remote_name}]: {remote.error}")
    if outcome.cancelled:
        click.echo("Migration cancelled before all repositories were processed.")
    click.echo(f"Log written to {outcome.log_path}")
    sys.exit(0 if log_summary.failed_migrations == 0 else 1)


@cli.command()
@click.argument("root", required=False, type=click.Path(file_okay=False))
@click.option("--max-depth", type=click.IntRange(min=0), default=None, help="Maximum scan depth")
@click.option("--exclude", "-e", multiple=True, help="Exclude dirs matching glob (repeatable)")
def count(root: str | None, max_depth: int | None, exclude: tuple[str, ...]) -> None:
    """Count git repositories under ROOT."""
    settings = get_settings()
    try:
        root_path = _resolve_root(root, settings.default_scan_root)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    total = run_async(
        count_repositories(
            root_path,
            max_depth=max_depth if max_depth is not None else settings.max_depth,
            exclude_patterns=exclude,
        )
    )
    click.echo(f"{total} repositories under {root_path}")


if __name__ == "__main__":
    cli()
