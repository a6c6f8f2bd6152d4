"""Pytest configuration and fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest

from tests.helpers import create_repo


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture creating repositories under tmp_path."""

    def _make(relative_path: str = "repo", remotes: dict[str, str] | None = None) -> Path:
        return create_repo(tmp_path, relative_path, remotes or {})

    return _make


@pytest.fixture
def sample_config() -> str:
    """A config with two remotes and unrelated sections around them."""
    return (
        "[core]\n"
        "\trepositoryformatversion = 0\n"
        "\tbare = false\n"
        '[remote "origin"]\n'
        "\turl = git@github.com:alice/project.git\n"
        "\tfetch = +refs/heads/*:refs/remotes/origin/*\n"
        '[remote "upstream"]\n'
        "    url = https://github.com/acme/project.git\n"
        "    fetch = +refs/heads/*:refs/remotes/upstream/*\n"
        '[branch "main"]\n'
        "\tremote = origin\n"
        "\tmerge = refs/heads/main\n"
    )
