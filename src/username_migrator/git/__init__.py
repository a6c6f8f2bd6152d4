"""Git integration: repository discovery and remote rewriting."""

from username_migrator.git.config_file import (
    find_matching_remotes,
    parse_git_config,
    read_remotes,
    set_remote_url,
    update_remote_in_config,
)
from username_migrator.git.scanner import (
    RepositoryScanner,
    ScanOptions,
    count_repositories,
    is_git_repository,
    scan_for_repositories,
)
from username_migrator.git.url_matcher import (
    CustomPattern,
    MatchMode,
    PatternMode,
    UsernameMode,
    select_match_mode,
)

__all__ = [
    "RepositoryScanner",
    "ScanOptions",
    "scan_for_repositories",
    "count_repositories",
    "is_git_repository",
    "parse_git_config",
    "update_remote_in_config",
    "read_remotes",
    "set_remote_url",
    "find_matching_remotes",
    "CustomPattern",
    "MatchMode",
    "UsernameMode",
    "PatternMode",
    "select_match_mode",
]
