"""Reading and rewriting remotes in a repository's ``.git/config``.

The config is treated as opaque text: only ``[remote "<name>"]`` section
headers and ``url = <value>`` lines are recognized, everything else is
passed through untouched. Only the first url line of a remote section is
significant, both when parsing and when rewriting.
"""

import asyncio
import re
from pathlib import Path

import structlog

from username_migrator.core.exceptions import RemoteConfigError
from username_migrator.core.models.repository import MatchedRemote, Remote
from username_migrator.git.ignore import GIT_DIR
from username_migrator.git.url_matcher import MatchMode

logger = structlog.get_logger(__name__)

_REMOTE_HEADER_RE = re.compile(r'^\[remote\s+"([^"]+)"\]$')
_URL_LINE_RE = re.compile(r"^url\s*=\s*(.+)$")
_INDENTED_URL_LINE_RE = re.compile(r"^(\s*)url\s*=\s*(.+)$")


def parse_git_config(content: str) -> list[Remote]:
    """Extract remotes from git config text.

    Never raises: malformed input simply yields fewer (or no) remotes.
    """
    remotes: list[Remote] = []
    seen: set[str] = set()
    current: str | None = None

    for line in content.split("\n"):
        stripped = line.strip()

        header = _REMOTE_HEADER_RE.match(stripped)
        if header:
            current = header.group(1)
            continue

        # Any other section header leaves the remote section
        if stripped.startswith("["):
            current = None
            continue

        if current is None or current in seen:
            continue

        url_match = _URL_LINE_RE.match(stripped)
        if url_match:
            url = url_match.group(1).strip()
            if url:
                remotes.append(Remote(name=current, url=url))
                seen.add(current)

    return remotes


def _rewrite(content: str, remote_name: str, new_url: str) -> tuple[str, bool]:
    lines = content.split("\n")
    result: list[str] = []
    in_target = False
    updated = False

    for line in lines:
        stripped = line.strip()

        header = _REMOTE_HEADER_RE.match(stripped)
        if header:
            in_target = header.group(1) == remote_name
            result.append(line)
            continue

        if stripped.startswith("["):
            in_target = False
            result.append(line)
            continue

        if in_target and not updated:
            body, eol = (line[:-1], "\r") if line.endswith("\r") else (line, "")
            url_match = _INDENTED_URL_LINE_RE.match(body)
            if url_match and url_match.group(2).strip():
                result.append(f"{url_match.group(1)}url = {new_url}{eol}")
                updated = True
                continue

        result.append(line)

    return "\n".join(result), updated


def update_remote_in_config(content: str, remote_name: str, new_url: str) -> str:
    """Replace the url of one remote, keeping everything else byte for byte.

    The url line keeps its original indentation. If the remote section (or
    its url line) does not exist the content is returned unchanged.
    """
    updated_content, _ = _rewrite(content, remote_name, new_url)
    return updated_content


def git_config_path(repo_path: str | Path) -> Path:
    return Path(repo_path) / GIT_DIR / "config"


def _read_text(path: Path) -> str:
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as handle:
        return handle.read()


def _write_text(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", errors="surrogateescape", newline="") as handle:
        handle.write(content)


async def read_git_config(repo_path: str | Path) -> str:
    """Read the raw config text of a repository."""
    config_path = git_config_path(repo_path)
    try:
        return await asyncio.to_thread(_read_text, config_path)
    except OSError as e:
        raise RemoteConfigError(
            f"Cannot read git config: {config_path}: {e}",
            details={"repository": str(repo_path), "config_path": str(config_path)},
        ) from e


async def read_remotes(repo_path: str | Path) -> list[Remote]:
    """Read and parse the remotes of a repository.

    Raises RemoteConfigError if ``.git/config`` cannot be read at all.
    """
    content = await read_git_config(repo_path)
    return parse_git_config(content)


async def set_remote_url(repo_path: str | Path, remote_name: str, new_url: str) -> None:
    """Rewrite one remote's url directly in ``.git/config``."""
    config_path = git_config_path(repo_path)
    content = await read_git_config(repo_path)

    updated_content, found = _rewrite(content, remote_name, new_url)
    if not found:
        raise RemoteConfigError(
            f"Remote '{remote_name}' has no url in {config_path}",
            details={"repository": str(repo_path), "remote": remote_name},
        )

    try:
        await asyncio.to_thread(_write_text, config_path, updated_content)
    except OSError as e:
        raise RemoteConfigError(
            f"Cannot write git config: {config_path}: {e}",
            details={"repository": str(repo_path), "config_path": str(config_path)},
        ) from e

    logger.debug("Remote url rewritten", repository=str(repo_path), remote=remote_name)


async def find_matching_remotes(repo_path: str | Path, mode: MatchMode) -> list[MatchedRemote]:
    """Read a repository's remotes and return those the mode would rewrite."""
    remotes = await read_remotes(repo_path)
    return mode.match_remotes(remotes)
