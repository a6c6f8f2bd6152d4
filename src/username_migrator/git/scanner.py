"""Directory scanner for finding git repositories.

The walk is depth-first over an explicit work list of ``(path, depth)``
items and is exposed as an async iterator of events, so memory stays
bounded on very large trees and cancellation is checked between items.
Filesystem calls run in worker threads; there is never more than one in
flight.
"""

import asyncio
import math
import os
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from pathlib import Path

import structlog
from pydantic import BaseModel, ConfigDict, Field

from username_migrator.core.cancellation import CancellationToken
from username_migrator.core.exceptions import RemoteConfigError
from username_migrator.core.models.repository import MatchedRepository, Repository
from username_migrator.core.models.scan import (
    ScanError,
    ScanEvent,
    ScanEventType,
    ScanProgress,
    ScanResult,
)
from username_migrator.git.config_file import read_remotes
from username_migrator.git.ignore import GIT_DIR, matches_exclude_pattern, should_ignore_segment
from username_migrator.git.url_matcher import (
    CustomPattern,
    PatternMode,
    UsernameMode,
    select_match_mode,
)
from username_migrator.utils.callbacks import notify

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 20
DEFAULT_PROGRESS_INTERVAL = 0.1

ScanProgressCallback = Callable[[ScanProgress], Awaitable[None] | None]


class ScanOptions(BaseModel):
    """Options for ``scan_for_repositories``."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)
    exclude_patterns: list[str] = Field(default_factory=list)
    custom_pattern: CustomPattern | None = None
    on_progress: ScanProgressCallback | None = None
    cancellation: CancellationToken | None = None
    progress_interval: float = Field(default=DEFAULT_PROGRESS_INTERVAL, ge=0)


def _is_git_repository(path: str) -> bool:
    return os.path.isdir(os.path.join(path, GIT_DIR))


async def is_git_repository(path: str | Path) -> bool:
    """Check if a directory directly contains a ``.git`` directory."""
    return await asyncio.to_thread(_is_git_repository, str(path))


def _list_child_directories(path: str) -> list[str]:
    """List direct child directory names, sorted. Symlinks are not followed."""
    names = []
    with os.scandir(path) as entries:
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    names.append(entry.name)
            except OSError:
                continue
    return sorted(names)


class RepositoryScanner:
    """Walks a directory tree looking for git repositories.

    Repository roots are not descended into. Dot-directories, denylisted
    directories and directories matching an exclude glob are pruned.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        exclude_patterns: Iterable[str] = (),
        cancellation: CancellationToken | None = None,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_depth = max_depth
        self._exclude_patterns = tuple(exclude_patterns)
        self._cancellation = cancellation or CancellationToken()
        self._progress_interval = progress_interval
        self._clock = clock

    @property
    def cancellation(self) -> CancellationToken:
        return self._cancellation

    def _should_skip(self, name: str) -> bool:
        if name.startswith(".") and name != GIT_DIR:
            return True
        return should_ignore_segment(name) or matches_exclude_pattern(name, self._exclude_patterns)

    async def walk(self, root: str | Path) -> AsyncIterator[ScanEvent]:
        """Yield walk events for the tree under ``root``.

        The iterator is finite and not restartable.
        """
        stack: list[tuple[str, int]] = [(os.path.abspath(os.path.expanduser(str(root))), 0)]

        while stack:
            if self._cancellation.is_cancelled():
                return

            path, depth = stack.pop()
            if depth > self._max_depth:
                continue

            yield ScanEvent(type=ScanEventType.VISITED, path=path)

            if await is_git_repository(path):
                yield ScanEvent(type=ScanEventType.FOUND_REPO, path=path)
                continue

            try:
                names = await asyncio.to_thread(_list_child_directories, path)
            except OSError as e:
                yield ScanEvent(type=ScanEventType.ERROR, path=path, message=str(e))
                continue

            children = []
            for name in names:
                child = os.path.join(path, name)
                if self._should_skip(name):
                    yield ScanEvent(type=ScanEventType.SKIPPED, path=child)
                    continue
                children.append((child, depth + 1))

            # Reversed so siblings are visited in name order
            stack.extend(reversed(children))

    async def scan(
        self,
        root: str | Path,
        mode: UsernameMode | PatternMode,
        on_progress: ScanProgressCallback | None = None,
    ) -> ScanResult:
        """Walk ``root`` and collect repositories with remotes matching ``mode``.

        Always returns a well formed result, also when cancelled part way.
        """
        started = self._clock()
        result = ScanResult()
        last_report = -math.inf

        def progress(current_path: str) -> ScanProgress:
            return ScanProgress(
                current_path=current_path,
                directories_scanned=result.directories_scanned,
                directories_skipped=result.directories_skipped,
                repositories_found=result.repositories_found,
                matched_count=len(result.matched_repositories),
            )

        logger.info("Scan started", root=str(root), mode=mode.kind, max_depth=self._max_depth)

        async for event in self.walk(root):
            if event.type is ScanEventType.VISITED:
                result.directories_scanned += 1
                now = self._clock()
                if on_progress is not None and now - last_report >= self._progress_interval:
                    last_report = now
                    await notify(on_progress, progress(event.path))
            elif event.type is ScanEventType.SKIPPED:
                result.directories_skipped += 1
            elif event.type is ScanEventType.ERROR:
                logger.warning("Cannot scan directory", path=event.path, error=event.message)
                result.errors.append(ScanError(path=event.path, message=event.message or "Unknown error"))
            else:
                result.repositories_found += 1
                matched = await self._match_repository(event.path, mode, result)
                if matched is not None:
                    result.matched_repositories.append(matched)

        result.cancelled = self._cancellation.is_cancelled()
        result.elapsed_ms = (self._clock() - started) * 1000
        await notify(on_progress, progress(""))

        logger.info(
            "Scan finished",
            directories=result.directories_scanned,
            skipped=result.directories_skipped,
            repositories=result.repositories_found,
            matched=len(result.matched_repositories),
            errors=len(result.errors),
            cancelled=result.cancelled,
        )
        return result

    async def _match_repository(
        self,
        path: str,
        mode: UsernameMode | PatternMode,
        result: ScanResult,
    ) -> MatchedRepository | None:
        try:
            remotes = await read_remotes(path)
        except RemoteConfigError as e:
            logger.warning("Cannot read repository remotes", path=path, error=str(e))
            result.errors.append(ScanError(path=path, message=str(e)))
            return None

        repository = Repository(path=path, remotes=remotes)
        matched_remotes = mode.match_remotes(repository.remotes)
        if not matched_remotes:
            return None

        logger.debug("Repository matched", path=path, remotes=[m.remote.name for m in matched_remotes])
        return MatchedRepository(
            path=repository.path,
            remotes=repository.remotes,
            matched_remotes=matched_remotes,
        )

    async def count_repositories(self, root: str | Path) -> int:
        count = 0
        async for event in self.walk(root):
            if event.type is ScanEventType.FOUND_REPO:
                count += 1
        return count


async def scan_for_repositories(
    root: str | Path,
    old_owner: str,
    new_owner: str,
    options: ScanOptions | None = None,
) -> ScanResult:
    """Scan for git repositories with remotes owned by ``old_owner``.

    With ``options.custom_pattern`` set, URLs are matched and rewritten by
    that regex instead and the owners are ignored.
    """
    options = options or ScanOptions()
    mode = select_match_mode(old_owner, new_owner, options.custom_pattern)
    scanner = RepositoryScanner(
        max_depth=options.max_depth,
        exclude_patterns=options.exclude_patterns,
        cancellation=options.cancellation,
        progress_interval=options.progress_interval,
    )
    return await scanner.scan(root, mode, on_progress=options.on_progress)


async def count_repositories(
    root: str | Path,
    max_depth: int = DEFAULT_MAX_DEPTH,
    exclude_patterns: Iterable[str] = (),
) -> int:
    """Count repository roots under ``root`` without reading any remotes."""
    scanner = RepositoryScanner(max_depth=max_depth, exclude_patterns=exclude_patterns)
    return await scanner.count_repositories(root)
