"""Unit tests for RepositoryMirror — clone and bounded-depth fetch with a mocked runner."""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.git.exceptions import (
    GitCloneError,
    GitCommandError,
    GitFetchError,
    GitTimeoutError,
    InvalidGitIdentifierError,
)
from app.services.git.mirror import RepositoryMirror, build_auth_url
from app.services.git.types import GitCommandResult

TOKEN = "ghp_mirror_token"
OK = GitCommandResult(stdout="", stderr="", exit_code=0)


def _make_mirror(cache_dir: Path) -> tuple[RepositoryMirror, MagicMock]:
    runner = MagicMock()
    runner.execute = AsyncMock(return_value=OK)
    mirror = RepositoryMirror(runner, cache_dir=cache_dir, fetch_depth=200, deep_fetch_depth=500)
    return mirror, runner


def _depth_of(call) -> str:
    args = call.args[0]
    return args[args.index("--depth") + 1]


class TestRepoPath:
    def test_layout_under_cache_dir(self, git_cache_dir):
        mirror, _ = _make_mirror(git_cache_dir)
        assert mirror.repo_path("octo", "widgets") == git_cache_dir / "octo" / "widgets.git"

    @pytest.mark.parametrize("owner,repo", [("../x", "widgets"), ("octo", "a/b"), ("-o", "r")])
    def test_rejects_path_escapes(self, git_cache_dir, owner, repo):
        mirror, _ = _make_mirror(git_cache_dir)
        with pytest.raises(InvalidGitIdentifierError):
            mirror.repo_path(owner, repo)


class TestEnsureMirror:
    """Tests for lazily creating the bare clone."""

    @pytest.mark.asyncio
    async def test_clones_bare_when_missing(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)

        path = await mirror.ensure_mirror("octo", "widgets", TOKEN)

        assert path == git_cache_dir / "octo" / "widgets.git"
        assert path.parent.is_dir()
        runner.execute.assert_awaited_once_with(
            ["clone", "--bare", build_auth_url("octo", "widgets", TOKEN), str(path)],
            path.parent,
            token=TOKEN,
        )

    @pytest.mark.asyncio
    async def test_existing_mirror_is_not_recloned(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)
        (git_cache_dir / "octo" / "widgets.git").mkdir(parents=True)

        await mirror.ensure_mirror("octo", "widgets", TOKEN)

        runner.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_concurrent_callers_clone_once(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)

        async def fake_clone(args, cwd, token=None):
            await asyncio.sleep(0.01)
            Path(args[3]).mkdir()
            return OK

        runner.execute.side_effect = fake_clone

        await asyncio.gather(
            mirror.ensure_mirror("octo", "widgets", TOKEN),
            mirror.ensure_mirror("octo", "widgets", TOKEN),
        )

        assert runner.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_clone_failure_is_sanitized(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)
        runner.execute.side_effect = GitCommandError(
            f"Git command failed (exit 128): could not read from {TOKEN}", exit_code=128
        )

        with pytest.raises(GitCloneError) as exc_info:
            await mirror.ensure_mirror("octo", "widgets", TOKEN)

        assert TOKEN not in exc_info.value.message
        assert exc_info.value.exit_code == 128


class TestFetchRefs:
    """Tests for bounded-depth fetch with a single deep retry."""

    @pytest.mark.asyncio
    async def test_fetches_at_default_depth(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)

        await mirror.fetch_refs("octo", "widgets", ["abc123", "def456"], TOKEN)

        runner.execute.assert_awaited_once()
        call = runner.execute.await_args
        assert call.args[0] == [
            "fetch",
            build_auth_url("octo", "widgets", TOKEN),
            "--depth",
            "200",
            "abc123",
            "def456",
        ]
        assert call.args[1] == git_cache_dir / "octo" / "widgets.git"

    @pytest.mark.asyncio
    async def test_shallow_failure_retries_once_deeper(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)
        runner.execute.side_effect = [
            GitCommandError("Git command failed (exit 128): error in object: unshallow abc123"),
            OK,
        ]

        await mirror.fetch_refs("octo", "widgets", ["abc123"], TOKEN)

        assert runner.execute.await_count == 2
        first, second = runner.execute.await_args_list
        assert _depth_of(first) == "200"
        assert _depth_of(second) == "500"

    @pytest.mark.asyncio
    async def test_explicit_depth_overrides_default(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)

        await mirror.fetch_refs("octo", "widgets", ["abc123"], TOKEN, depth=50)

        assert _depth_of(runner.execute.await_args) == "50"

    @pytest.mark.asyncio
    async def test_non_shallow_failure_does_not_retry(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)
        runner.execute.side_effect = GitCommandError(
            "Git command failed (exit 128): couldn't find remote ref abc123", exit_code=128
        )

        with pytest.raises(GitFetchError) as exc_info:
            await mirror.fetch_refs("octo", "widgets", ["abc123"], TOKEN)

        assert runner.execute.await_count == 1
        assert exc_info.value.refs == ["abc123"]
        assert "abc123" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_deep_retry_failure_raises(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)
        runner.execute.side_effect = [
            GitCommandError(f"shallow update not allowed for {TOKEN}"),
            GitCommandError(f"shallow update not allowed for {TOKEN}"),
        ]

        with pytest.raises(GitFetchError, match="even with deep fetch") as exc_info:
            await mirror.fetch_refs("octo", "widgets", ["abc123"], TOKEN)

        assert runner.execute.await_count == 2
        assert TOKEN not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout_propagates_without_retry(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)
        runner.execute.side_effect = GitTimeoutError("Git command timed out after 60s", 60)

        with pytest.raises(GitTimeoutError):
            await mirror.fetch_refs("octo", "widgets", ["abc123"], TOKEN)

        assert runner.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_invalid_ref_never_reaches_git(self, git_cache_dir):
        mirror, runner = _make_mirror(git_cache_dir)

        with pytest.raises(InvalidGitIdentifierError):
            await mirror.fetch_refs("octo", "widgets", ["--upload-pack=touch /tmp/x"], TOKEN)

        runner.execute.assert_not_awaited()
