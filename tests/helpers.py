"""Helpers for building throw-away repository trees."""

from pathlib import Path

TAB = "\t"


def build_git_config(remotes: dict[str, str]) -> str:
    """Create minimal .git/config content with tab-indented remote sections."""
    lines = ["[core]", f"{TAB}repositoryformatversion = 0", f"{TAB}filemode = true", f"{TAB}bare = false"]
    for name, url in remotes.items():
        lines += [
            f'[remote "{name}"]',
            f"{TAB}url = {url}",
            f"{TAB}fetch = +refs/heads/*:refs/remotes/{name}/*",
        ]
    lines += ['[branch "main"]', f"{TAB}remote = origin", f"{TAB}merge = refs/heads/main"]
    return "\n".join(lines) + "\n"


def create_repo(base: Path, relative_path: str, remotes: dict[str, str]) -> Path:
    """Create a repository skeleton (only what the migrator reads)."""
    repo_path = base / relative_path if relative_path else base
    git_dir = repo_path / ".git"
    (git_dir / "refs" / "heads").mkdir(parents=True)
    (git_dir / "config").write_text(build_git_config(remotes))
    (git_dir / "HEAD").write_text("ref: refs/heads/main\n")
    return repo_path
