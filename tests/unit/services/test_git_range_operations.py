"""Unit tests for GitRangeOperations and the diff output parsers."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.services.git.exceptions import (
    GitCommandError,
    InvalidGitIdentifierError,
    MergeBaseNotFoundError,
)
from app.services.git.range_operations import (
    GitRangeOperations,
    parse_cross_diff,
    parse_name_status,
    parse_numstat,
)
from app.services.git.types import GitCommandResult

TOKEN = "ghp_range_token"
REPO_PATH = Path("/cache/octo/widgets.git")
BASE = "b" * 40
HEAD = "a" * 40


def _result(stdout: str = "") -> GitCommandResult:
    return GitCommandResult(stdout=stdout, stderr="", exit_code=0)


def _make_ops() -> tuple[GitRangeOperations, MagicMock, MagicMock]:
    mirror = MagicMock()
    mirror.ensure_mirror = AsyncMock(return_value=REPO_PATH)
    mirror.fetch_refs = AsyncMock()
    runner = MagicMock()
    runner.execute = AsyncMock()
    return GitRangeOperations(mirror, runner), mirror, runner


# ═══════════════════════════════════════════════════════════════════════════
# compute_merge_base
# ═══════════════════════════════════════════════════════════════════════════


class TestComputeMergeBase:
    @pytest.mark.asyncio
    async def test_returns_trimmed_sha(self):
        ops, mirror, runner = _make_ops()
        runner.execute.return_value = _result("c" * 40 + "\n")

        result = await ops.compute_merge_base("octo", "widgets", BASE, HEAD, TOKEN)

        assert result == "c" * 40
        mirror.ensure_mirror.assert_awaited_once_with("octo", "widgets", TOKEN)
        mirror.fetch_refs.assert_awaited_once_with("octo", "widgets", [BASE, HEAD], TOKEN)
        runner.execute.assert_awaited_once_with(
            ["merge-base", BASE, HEAD], REPO_PATH, token=TOKEN
        )

    @pytest.mark.asyncio
    async def test_exit_one_without_stderr_is_not_found(self):
        ops, _, runner = _make_ops()
        runner.execute.side_effect = GitCommandError(
            "Git command failed (exit 1): ", exit_code=1, stderr=""
        )

        with pytest.raises(MergeBaseNotFoundError) as exc_info:
            await ops.compute_merge_base("octo", "widgets", BASE, HEAD, TOKEN)

        assert exc_info.value.ref1 == BASE
        assert exc_info.value.ref2 == HEAD

    @pytest.mark.asyncio
    async def test_empty_output_is_not_found(self):
        ops, _, runner = _make_ops()
        runner.execute.return_value = _result("")

        with pytest.raises(MergeBaseNotFoundError):
            await ops.compute_merge_base("octo", "widgets", BASE, HEAD, TOKEN)

    @pytest.mark.asyncio
    async def test_other_failures_are_command_errors(self):
        ops, _, runner = _make_ops()
        runner.execute.side_effect = GitCommandError(
            "Git command failed (exit 128): fatal: Not a valid object name",
            exit_code=128,
            stderr="fatal: Not a valid object name",
        )

        with pytest.raises(GitCommandError, match="Failed to compute merge-base") as exc_info:
            await ops.compute_merge_base("octo", "widgets", BASE, HEAD, TOKEN)

        assert not isinstance(exc_info.value, MergeBaseNotFoundError)
        assert exc_info.value.exit_code == 128

    @pytest.mark.asyncio
    async def test_invalid_ref_rejected_before_mirror(self):
        ops, mirror, runner = _make_ops()

        with pytest.raises(InvalidGitIdentifierError):
            await ops.compute_merge_base("octo", "widgets", "-oops", HEAD, TOKEN)

        mirror.ensure_mirror.assert_not_awaited()
        runner.execute.assert_not_awaited()


# ═══════════════════════════════════════════════════════════════════════════
# compute_range_diff
# ═══════════════════════════════════════════════════════════════════════════


class TestComputeRangeDiff:
    @pytest.mark.asyncio
    async def test_runs_range_diff_over_both_ranges(self):
        ops, mirror, runner = _make_ops()
        runner.execute.return_value = _result(
            "1:  1111111 ! 1:  2222222 Add widget\n    @@ widget.py\n"
        )

        result = await ops.compute_range_diff(
            "octo", "widgets", "m1", "h1", "m2", "h2", TOKEN
        )

        assert result.has_changes is True
        assert result.output.startswith("1:  1111111 ! 1:  2222222")
        mirror.fetch_refs.assert_awaited_once_with(
            "octo", "widgets", ["m1", "h1", "m2", "h2"], TOKEN
        )
        runner.execute.assert_awaited_once_with(
            ["range-diff", "m1..h1", "m2..h2"], REPO_PATH, token=TOKEN
        )

    @pytest.mark.asyncio
    async def test_blank_output_has_no_changes(self):
        ops, _, runner = _make_ops()
        runner.execute.return_value = _result("  \n\n")

        result = await ops.compute_range_diff(
            "octo", "widgets", "m1", "h1", "m2", "h2", TOKEN
        )

        assert result.output == ""
        assert result.has_changes is False

    @pytest.mark.asyncio
    async def test_failure_is_wrapped(self):
        ops, _, runner = _make_ops()
        runner.execute.side_effect = GitCommandError("Git command failed (exit 128): bad")

        with pytest.raises(GitCommandError, match="Failed to compute range-diff"):
            await ops.compute_range_diff("octo", "widgets", "m1", "h1", "m2", "h2", TOKEN)


# ═══════════════════════════════════════════════════════════════════════════
# Cross diff
# ═══════════════════════════════════════════════════════════════════════════

NUMSTAT = "3\t1\tsrc/app.py\n-\t-\tlogo.png\n5\t0\tdocs/new.md\n"
NAME_STATUS = "M\tsrc/app.py\nM\tlogo.png\nR087\tdocs/old.md\tdocs/new.md\n"
DIFF = """diff --git a/src/app.py b/src/app.py
index 1111111..2222222 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,5 @@
 import os
+import sys
+import json
-import re
+import typing
diff --git a/logo.png b/logo.png
index 3333333..4444444 100644
Binary files a/logo.png and b/logo.png differ
diff --git a/docs/old.md b/docs/new.md
similarity index 87%
rename from docs/old.md
rename to docs/new.md
@@ -10,0 +11,5 @@
+line
"""


class TestParsers:
    def test_parse_name_status_keys_renames_on_new_path(self):
        statuses = parse_name_status(NAME_STATUS)

        assert statuses == {
            "src/app.py": "modified",
            "logo.png": "modified",
            "docs/new.md": "renamed",
        }

    def test_parse_numstat_treats_binary_as_zero(self):
        stats = parse_numstat(NUMSTAT)

        assert stats["src/app.py"] == (3, 1)
        assert stats["logo.png"] == (0, 0)

    def test_parse_cross_diff_combines_outputs(self):
        files = parse_cross_diff(NUMSTAT, NAME_STATUS, DIFF)

        assert [f.filename for f in files] == ["src/app.py", "logo.png", "docs/new.md"]

        app_file = files[0]
        assert app_file.status == "modified"
        assert (app_file.additions, app_file.deletions) == (3, 1)
        assert app_file.patch is not None
        assert app_file.patch.startswith("@@ -1,3 +1,5 @@")
        assert app_file.patch.endswith("+import typing")

        assert files[1].patch is None
        assert files[2].status == "renamed"
        assert files[2].additions == 5

    def test_empty_diff(self):
        assert parse_cross_diff("", "", "") == []


class TestComputeCrossDiff:
    @pytest.mark.asyncio
    async def test_runs_three_diffs(self):
        ops, _, runner = _make_ops()
        runner.execute.side_effect = [_result(NUMSTAT), _result(NAME_STATUS), _result(DIFF)]

        files = await ops.compute_cross_diff("octo", "widgets", BASE, HEAD, TOKEN)

        assert len(files) == 3
        commands = [call.args[0][:2] for call in runner.execute.await_args_list]
        assert commands == [
            ["diff", "--numstat"],
            ["diff", "--name-status"],
            ["diff", "--no-color"],
        ]
