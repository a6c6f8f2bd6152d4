"""Directory ignore rules for the repository scanner.

The denylist names directories that hold cached, downloaded or generated
content (never a user's own repositories) or that are very large and slow
to walk.

Segment matching is a plain substring test, so ``mydist`` or ``layout`` are
pruned as well as ``dist`` and ``out``. This trades precision for speed and
must stay as is; callers should expect some false-positive pruning.
"""

import re
from collections.abc import Iterable
from functools import lru_cache

GIT_DIR = ".git"

IGNORE_PATTERNS: tuple[str, ...] = (
    # Package manager caches and dependencies
    "node_modules",
    ".pnpm-store",
    ".npm",
    ".yarn",
    ".bun",
    "vendor",  # PHP, Go
    ".cargo",
    ".rustup",
    "go/pkg",
    ".gradle",
    ".m2",  # Maven
    ".ivy2",
    ".sbt",
    "Pods",  # CocoaPods
    ".pub-cache",  # Dart/Flutter
    ".nuget",
    # Python
    ".venv",
    "venv",
    "__pycache__",
    ".conda",
    ".virtualenvs",
    # Build outputs
    "dist",
    "build",
    "out",
    "target",
    ".next",
    ".nuxt",
    ".output",
    # IDE and editor
    ".idea",
    ".vs",
    ".fleet",
    # System caches (macOS)
    "Library/Caches",
    "Library/Application Support",
    "Library/Developer",
    "Library/Containers",
    "Library/Group Containers",
    ".Trash",
    # System caches (Linux)
    ".cache",
    ".local/share/Trash",
    "snap",
    # System caches (Windows)
    "AppData/Local/Temp",
    "AppData/Local/npm-cache",
    "AppData/Roaming/npm-cache",
    # Git internals (only .git/config is ever read)
    ".git/objects",
    ".git/lfs",
    # Version control other than git
    ".svn",
    ".hg",
    # Virtual machines and containers
    ".docker",
    ".vagrant",
    "VirtualBox VMs",
    # Cloud storage
    "Dropbox",
    "Google Drive",
    "OneDrive",
    "iCloud Drive",
    # Misc
    "Downloads",
    ".Spotlight-V100",
    ".fseventsd",
    ".DocumentRevisions-V100",
    ".TemporaryItems",
)

_MULTI_SEGMENT_PATTERNS = tuple(p for p in IGNORE_PATTERNS if "/" in p)


def should_ignore_segment(segment: str) -> bool:
    """Check if a single directory name matches the denylist.

    ``.git`` itself never matches: the scanner treats it specially.
    """
    return any(segment == pattern or pattern in segment for pattern in IGNORE_PATTERNS)


def should_ignore_path(full_path: str) -> bool:
    """Check if any part of a path is ignored.

    Handles multi-segment patterns like ``Library/Caches`` or
    ``.git/objects`` as well as every individual segment.
    """
    normalized = full_path.replace("\\", "/")

    for pattern in _MULTI_SEGMENT_PATTERNS:
        if pattern in normalized:
            return True

    return any(should_ignore_segment(segment) for segment in normalized.split("/"))


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate an exclude glob into a case-insensitive anchored regex.

    ``**`` matches anything including separators, ``*`` anything but a
    separator and ``?`` a single character. Everything else is literal.
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "*":
            if pattern[i + 1 : i + 2] == "*":
                parts.append(".*")
                i += 1
            else:
                parts.append("[^/]*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        i += 1
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def matches_glob(pattern: str, name: str) -> bool:
    return glob_to_regex(pattern).match(name) is not None


def matches_exclude_pattern(name: str, patterns: Iterable[str]) -> bool:
    """Check if a directory name matches any caller-supplied exclude glob."""
    return any(matches_glob(pattern, name) for pattern in patterns)
