"""Tests for the repository scanner."""

import os
from pathlib import Path

import pytest

from tests.helpers import create_repo
from username_migrator.core.cancellation import CancellationToken
from username_migrator.core.models.scan import ScanEventType, ScanProgress
from username_migrator.git.scanner import (
    RepositoryScanner,
    ScanOptions,
    count_repositories,
    is_git_repository,
    scan_for_repositories,
)
from username_migrator.git.url_matcher import CustomPattern, UsernameMode


@pytest.fixture
def three_repos(tmp_path: Path) -> Path:
    """Two repositories owned by alice, one by bob."""
    create_repo(tmp_path, "work/api", {"origin": "git@github.com:alice/api.git"})
    create_repo(tmp_path, "work/web", {"origin": "https://github.com/Alice/web"})
    create_repo(tmp_path, "oss/lib", {"origin": "git@github.com:bob/lib.git"})
    return tmp_path


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.unit
class TestIsGitRepository:
    """Tests for is_git_repository."""

    @pytest.mark.asyncio
    async def test_repository(self, make_repo) -> None:
        assert await is_git_repository(make_repo("project")) is True

    @pytest.mark.asyncio
    async def test_plain_directory(self, tmp_path: Path) -> None:
        assert await is_git_repository(tmp_path) is False

    @pytest.mark.asyncio
    async def test_git_file_is_not_a_repository(self, tmp_path: Path) -> None:
        (tmp_path / ".git").write_text("gitdir: ../elsewhere\n")
        assert await is_git_repository(tmp_path) is False


@pytest.mark.unit
class TestScanForRepositories:
    """Tests for scan_for_repositories."""

    @pytest.mark.asyncio
    async def test_finds_matching_repositories(self, three_repos: Path) -> None:
        result = await scan_for_repositories(three_repos, "alice", "carol")

        assert result.repositories_found == 3
        assert len(result.matched_repositories) == 2
        paths = sorted(repo.path for repo in result.matched_repositories)
        assert paths == [str(three_repos / "work" / "api"), str(three_repos / "work" / "web")]
        new_urls = sorted(m.new_url for repo in result.matched_repositories for m in repo.matched_remotes)
        assert new_urls == ["git@github.com:carol/api.git", "https://github.com/carol/web"]

    @pytest.mark.asyncio
    async def test_matched_repository_keeps_all_remotes(self, make_repo, tmp_path: Path) -> None:
        make_repo(
            "project",
            {"origin": "git@github.com:olduser/repo.git", "upstream": "https://github.com/org/repo.git"},
        )
        result = await scan_for_repositories(tmp_path, "olduser", "newuser")

        repo = result.matched_repositories[0]
        assert [r.name for r in repo.remotes] == ["origin", "upstream"]
        assert [m.remote.name for m in repo.matched_remotes] == ["origin"]
        assert repo.matched_remotes[0].new_url == "git@github.com:newuser/repo.git"

    @pytest.mark.asyncio
    async def test_no_matches(self, three_repos: Path) -> None:
        result = await scan_for_repositories(three_repos, "nobody", "carol")
        assert result.repositories_found == 3
        assert result.matched_repositories == []

    @pytest.mark.asyncio
    async def test_root_is_a_repository(self, tmp_path: Path) -> None:
        create_repo(tmp_path, "", {"origin": "git@github.com:alice/root.git"})
        create_repo(tmp_path, "nested", {"origin": "git@github.com:alice/nested.git"})

        result = await scan_for_repositories(tmp_path, "alice", "carol")

        assert result.directories_scanned == 1
        assert [r.path for r in result.matched_repositories] == [str(tmp_path)]

    @pytest.mark.asyncio
    async def test_does_not_descend_into_repositories(self, make_repo, tmp_path: Path) -> None:
        make_repo("parent", {"origin": "git@github.com:alice/parent.git"})
        make_repo("parent/nested-lib", {"origin": "git@github.com:alice/inner.git"})

        result = await scan_for_repositories(tmp_path, "alice", "carol")

        assert result.repositories_found == 1
        assert [r.path for r in result.matched_repositories] == [str(tmp_path / "parent")]

    @pytest.mark.asyncio
    async def test_denylist_substring_prunes_directory(self, make_repo, tmp_path: Path) -> None:
        # "outer" contains the denylisted "out"
        make_repo("outer", {"origin": "git@github.com:alice/outer.git"})

        result = await scan_for_repositories(tmp_path, "alice", "carol")

        assert result.repositories_found == 0
        assert result.directories_skipped == 1

    @pytest.mark.asyncio
    async def test_config_with_non_utf8_bytes_still_matches(self, make_repo, tmp_path: Path) -> None:
        repo = make_repo("project", {"origin": "git@github.com:alice/proj.git"})
        with open(repo / ".git" / "config", "ab") as handle:
            handle.write("[user]\n\tname = Jos\xe9\n".encode("latin-1"))

        result = await scan_for_repositories(tmp_path, "alice", "carol")

        assert result.errors == []
        assert len(result.matched_repositories) == 1
        assert result.matched_repositories[0].matched_remotes[0].new_url == "git@github.com:carol/proj.git"

    @pytest.mark.asyncio
    async def test_skips_node_modules(self, make_repo, tmp_path: Path) -> None:
        make_repo("project", {"origin": "git@github.com:alice/project.git"})
        make_repo("project-b/node_modules/dep", {"origin": "git@github.com:alice/dep.git"})

        result = await scan_for_repositories(tmp_path, "alice", "carol")

        assert result.repositories_found == 1
        assert [r.path for r in result.matched_repositories] == [str(tmp_path / "project")]
        assert result.directories_skipped >= 1

    @pytest.mark.asyncio
    async def test_skips_hidden_directories(self, make_repo, tmp_path: Path) -> None:
        make_repo(".config/tool", {"origin": "git@github.com:alice/tool.git"})

        result = await scan_for_repositories(tmp_path, "alice", "carol")

        assert result.repositories_found == 0
        assert result.directories_skipped == 1

    @pytest.mark.asyncio
    async def test_exclude_patterns(self, make_repo, tmp_path: Path) -> None:
        make_repo("project", {"origin": "git@github.com:targetuser/main.git"})
        make_repo("temp-backup/repo", {"origin": "git@github.com:targetuser/backup.git"})
        make_repo("old-stuff/repo", {"origin": "git@github.com:targetuser/old.git"})

        result = await scan_for_repositories(
            tmp_path,
            "targetuser",
            "newuser",
            ScanOptions(exclude_patterns=["temp*", "OLD*"]),
        )

        assert [r.path for r in result.matched_repositories] == [str(tmp_path / "project")]
        assert result.directories_skipped == 2

    @pytest.mark.asyncio
    async def test_max_depth(self, make_repo, tmp_path: Path) -> None:
        make_repo("level1/level2/level3/level4/project", {"origin": "git@github.com:targetuser/deep.git"})

        shallow = await scan_for_repositories(tmp_path, "targetuser", "newuser", ScanOptions(max_depth=2))
        deep = await scan_for_repositories(tmp_path, "targetuser", "newuser", ScanOptions(max_depth=5))

        assert shallow.matched_repositories == []
        assert len(deep.matched_repositories) == 1

    @pytest.mark.asyncio
    async def test_nonexistent_root(self, tmp_path: Path) -> None:
        missing = tmp_path / "non" / "existent"
        result = await scan_for_repositories(missing, "targetuser", "newuser")

        assert len(result.errors) == 1
        assert result.errors[0].path == str(missing)
        assert result.matched_repositories == []

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.name != "posix" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
    async def test_unreadable_directory_does_not_abort(self, make_repo, tmp_path: Path) -> None:
        make_repo("ok", {"origin": "git@github.com:alice/ok.git"})
        locked = tmp_path / "locked"
        locked.mkdir()
        locked.chmod(0)
        try:
            result = await scan_for_repositories(tmp_path, "alice", "carol")
        finally:
            locked.chmod(0o755)

        assert [e.path for e in result.errors] == [str(locked)]
        assert len(result.matched_repositories) == 1

    @pytest.mark.asyncio
    async def test_unreadable_config_is_recorded(self, make_repo, tmp_path: Path) -> None:
        repo = make_repo("broken", {"origin": "git@github.com:alice/broken.git"})
        (repo / ".git" / "config").unlink()

        result = await scan_for_repositories(tmp_path, "alice", "carol")

        assert result.repositories_found == 1
        assert result.matched_repositories == []
        assert result.errors[0].path == str(repo)

    @pytest.mark.asyncio
    async def test_custom_pattern(self, make_repo, tmp_path: Path) -> None:
        make_repo("project", {"origin": "git@github.com:user/old-repo-name.git"})

        result = await scan_for_repositories(
            tmp_path,
            "user",
            "user",
            ScanOptions(custom_pattern=CustomPattern(from_pattern="old-repo-name", to_template="new-repo-name")),
        )

        assert len(result.matched_repositories) == 1
        assert result.matched_repositories[0].matched_remotes[0].new_url == (
            "git@github.com:user/new-repo-name.git"
        )

    @pytest.mark.asyncio
    async def test_custom_pattern_with_capture_groups(self, make_repo, tmp_path: Path) -> None:
        make_repo("project", {"origin": "git@github.com:olduser/myrepo.git"})

        result = await scan_for_repositories(
            tmp_path,
            "olduser",
            "newuser",
            ScanOptions(
                custom_pattern=CustomPattern(
                    from_pattern="github\\.com:olduser/(.+)",
                    to_template="github.com:newuser/$1",
                )
            ),
        )

        assert result.matched_repositories[0].matched_remotes[0].new_url == "git@github.com:newuser/myrepo.git"

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, three_repos: Path) -> None:
        token = CancellationToken()
        token.cancel()

        result = await scan_for_repositories(three_repos, "alice", "carol", ScanOptions(cancellation=token))

        assert result.cancelled is True
        assert result.directories_scanned == 0
        assert result.repositories_found == 0
        assert result.matched_repositories == []

    @pytest.mark.asyncio
    async def test_cancel_during_scan(self, three_repos: Path) -> None:
        token = CancellationToken()

        def on_progress(progress: ScanProgress) -> None:
            if progress.repositories_found >= 1:
                token.cancel()

        result = await scan_for_repositories(
            three_repos,
            "alice",
            "carol",
            ScanOptions(cancellation=token, on_progress=on_progress, progress_interval=0),
        )

        assert result.cancelled is True
        assert 1 <= result.repositories_found < 3

    @pytest.mark.asyncio
    async def test_progress_reports(self, three_repos: Path) -> None:
        (three_repos / "node_modules").mkdir()
        reports: list[ScanProgress] = []

        result = await scan_for_repositories(
            three_repos,
            "alice",
            "carol",
            ScanOptions(on_progress=reports.append, progress_interval=0),
        )

        assert len(reports) == result.directories_scanned + 1
        final = reports[-1]
        assert final.current_path == ""
        assert final.directories_scanned == result.directories_scanned
        assert final.directories_skipped == result.directories_skipped == 1
        assert final.repositories_found == 3
        assert final.matched_count == 2
        counts = [r.directories_scanned for r in reports]
        assert counts == sorted(counts)

    @pytest.mark.asyncio
    async def test_async_progress_callback(self, three_repos: Path) -> None:
        seen: list[str] = []

        async def on_progress(progress: ScanProgress) -> None:
            seen.append(progress.current_path)

        await scan_for_repositories(three_repos, "alice", "carol", ScanOptions(on_progress=on_progress))

        assert seen[-1] == ""


@pytest.mark.unit
class TestRepositoryScanner:
    """Tests for RepositoryScanner internals."""

    @pytest.mark.asyncio
    async def test_progress_is_throttled(self, three_repos: Path) -> None:
        clock = FakeClock()
        reports: list[ScanProgress] = []
        scanner = RepositoryScanner(progress_interval=0.1, clock=clock)

        result = await scanner.scan(
            three_repos, UsernameMode(old_owner="alice", new_owner="carol"), on_progress=reports.append
        )

        # Clock never advances: one throttled report plus the final one
        assert result.directories_scanned > 2
        assert len(reports) == 2
        assert reports[-1].current_path == ""

    @pytest.mark.asyncio
    async def test_walk_events_in_name_order(self, tmp_path: Path) -> None:
        create_repo(tmp_path, "b", {})
        create_repo(tmp_path, "a", {})
        (tmp_path / "dist").mkdir()

        events = [event async for event in RepositoryScanner().walk(tmp_path)]

        found = [e.path for e in events if e.type is ScanEventType.FOUND_REPO]
        skipped = [e.path for e in events if e.type is ScanEventType.SKIPPED]
        assert found == [str(tmp_path / "a"), str(tmp_path / "b")]
        assert skipped == [str(tmp_path / "dist")]
        assert events[0].type is ScanEventType.VISITED
        assert events[0].path == str(tmp_path)

    @pytest.mark.asyncio
    async def test_walk_ignores_files_and_symlinks(self, tmp_path: Path) -> None:
        target = tmp_path / "real"
        create_repo(tmp_path, "real", {})
        (tmp_path / "notes.txt").write_text("x")
        (tmp_path / "link").symlink_to(target, target_is_directory=True)

        events = [event async for event in RepositoryScanner().walk(tmp_path)]

        visited = [e.path for e in events if e.type is ScanEventType.VISITED]
        assert visited == [str(tmp_path), str(target)]

    @pytest.mark.asyncio
    async def test_count_repositories(self, three_repos: Path) -> None:
        create_repo(three_repos, "nested/deeper/project-c", {"origin": "git@github.com:x/c.git"})
        assert await count_repositories(three_repos) == 4

    @pytest.mark.asyncio
    async def test_count_repositories_with_excludes(self, three_repos: Path) -> None:
        assert await count_repositories(three_repos, exclude_patterns=["oss"]) == 2
