"""
Merge-base and range-diff computation against a bare mirror.

Every operation makes sure the mirror exists, fetches the commits it needs,
then runs a read-only git command. Refs in the mirror are never rewritten.
"""

import logging
import re

from app.services.git.constants import FILE_STATUS_NAMES
from app.services.git.exceptions import GitCommandError, MergeBaseNotFoundError
from app.services.git.helpers import sanitize_error, validate_ref
from app.services.git.mirror import RepositoryMirror
from app.services.git.process_runner import ProcessRunner
from app.services.git.types import CrossDiffFile, RangeDiffResult

logger = logging.getLogger(__name__)

_DIFF_HEADER = re.compile(r"^a/(.*?) b/(.*)$")


class GitRangeOperations:
    """Commit-graph queries used to compare pull request revisions."""

    def __init__(self, mirror: RepositoryMirror, runner: ProcessRunner):
        self.mirror = mirror
        self.runner = runner

    async def compute_merge_base(
        self,
        owner: str,
        repo: str,
        ref1: str,
        ref2: str,
        token: str,
    ) -> str:
        """
        Compute the best common ancestor of two refs.

        Raises:
            MergeBaseNotFoundError: If the refs share no history
            GitCommandError: For any other git failure
        """
        validate_ref(ref1)
        validate_ref(ref2)
        repo_path = await self.mirror.ensure_mirror(owner, repo, token)
        await self.mirror.fetch_refs(owner, repo, [ref1, ref2], token)

        try:
            result = await self.runner.execute(
                ["merge-base", ref1, ref2], repo_path, token=token
            )
        except GitCommandError as e:
            # merge-base exits 1 with no output when there is no common ancestor
            if e.exit_code == 1 and not e.stderr:
                raise MergeBaseNotFoundError(ref1, ref2) from None
            raise GitCommandError(
                f"Failed to compute merge-base: {sanitize_error(e.message, token)}",
                exit_code=e.exit_code,
                stderr=e.stderr,
            ) from None

        merge_base = result.stdout.strip()
        if not merge_base:
            raise MergeBaseNotFoundError(ref1, ref2)
        return merge_base

    async def compute_range_diff(
        self,
        owner: str,
        repo: str,
        old_base: str,
        old_head: str,
        new_base: str,
        new_head: str,
        token: str,
    ) -> RangeDiffResult:
        """
        Compare two commit ranges with `git range-diff`.

        Args:
            old_base, old_head: The earlier revision's merge-base and head
            new_base, new_head: The later revision's merge-base and head

        Returns:
            RangeDiffResult; has_changes is True iff the output is non-empty
        """
        refs = [old_base, old_head, new_base, new_head]
        for ref in refs:
            validate_ref(ref)
        repo_path = await self.mirror.ensure_mirror(owner, repo, token)
        await self.mirror.fetch_refs(owner, repo, refs, token)

        try:
            result = await self.runner.execute(
                ["range-diff", f"{old_base}..{old_head}", f"{new_base}..{new_head}"],
                repo_path,
                token=token,
            )
        except GitCommandError as e:
            raise GitCommandError(
                f"Failed to compute range-diff: {sanitize_error(e.message, token)}",
                exit_code=e.exit_code,
                stderr=e.stderr,
            ) from None

        output = result.stdout.strip()
        return RangeDiffResult(output=output, has_changes=len(output) > 0)

    async def compute_cross_diff(
        self,
        owner: str,
        repo: str,
        from_sha: str,
        to_sha: str,
        token: str,
    ) -> list[CrossDiffFile]:
        """
        Compute a two-dot diff between two commits as per-file entries.

        Shaped like GitHub's pull request file list: status, addition and
        deletion counts, and the patch hunks for each file.
        """
        validate_ref(from_sha)
        validate_ref(to_sha)
        repo_path = await self.mirror.ensure_mirror(owner, repo, token)
        await self.mirror.fetch_refs(owner, repo, [from_sha, to_sha], token)

        numstat = await self.runner.execute(
            ["diff", "--numstat", from_sha, to_sha], repo_path, token=token
        )
        name_status = await self.runner.execute(
            ["diff", "--name-status", from_sha, to_sha], repo_path, token=token
        )
        full_diff = await self.runner.execute(
            ["diff", "--no-color", from_sha, to_sha], repo_path, token=token
        )

        return parse_cross_diff(numstat.stdout, name_status.stdout, full_diff.stdout)


def parse_name_status(output: str) -> dict[str, str]:
    """Map filename -> status name from `git diff --name-status` output."""
    statuses: dict[str, str] = {}
    for line in output.strip().split("\n"):
        if not line:
            continue
        parts = line.split("\t")
        # Renames and copies list old and new path; key on the new one
        filename = parts[2] if len(parts) > 2 else parts[1]
        statuses[filename] = FILE_STATUS_NAMES.get(parts[0][0], "modified")
    return statuses


def parse_numstat(output: str) -> dict[str, tuple[int, int]]:
    """Map filename -> (additions, deletions) from `git diff --numstat` output."""
    stats: dict[str, tuple[int, int]] = {}
    for line in output.strip().split("\n"):
        if not line:
            continue
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        # Binary files report "-" for both counts
        additions = 0 if parts[0] == "-" else int(parts[0])
        deletions = 0 if parts[1] == "-" else int(parts[1])
        stats[parts[2]] = (additions, deletions)
    return stats


def parse_cross_diff(numstat: str, name_status: str, diff: str) -> list[CrossDiffFile]:
    """Combine the three `git diff` outputs into per-file entries."""
    statuses = parse_name_status(name_status)
    stats = parse_numstat(numstat)

    files: list[CrossDiffFile] = []
    for file_diff in re.split(r"^diff --git ", diff, flags=re.MULTILINE)[1:]:
        lines = file_diff.split("\n")
        header = _DIFF_HEADER.match(lines[0])
        if not header:
            continue
        filename = header.group(2)

        patch_start = next(
            (i for i, line in enumerate(lines[1:], start=1) if line.startswith("@@")),
            None,
        )
        patch = "\n".join(lines[patch_start:]).rstrip() if patch_start is not None else None
        additions, deletions = stats.get(filename, (0, 0))

        files.append(
            CrossDiffFile(
                filename=filename,
                status=statuses.get(filename, "modified"),
                additions=additions,
                deletions=deletions,
                patch=patch,
            )
        )

    return files
