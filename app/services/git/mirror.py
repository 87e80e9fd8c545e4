"""
Bare repository mirrors.

One bare clone per owner/repo lives under the git cache directory. Mirrors
are created on first use and then only grown by bounded-depth fetches;
nothing here deletes or rewrites them.
"""

import asyncio
import logging
from collections import defaultdict
from pathlib import Path

from app.config import settings
from app.services.git.constants import GITHUB_CLONE_HOST
from app.services.git.exceptions import GitCloneError, GitCommandError, GitFetchError
from app.services.git.helpers import (
    is_shallow_error,
    sanitize_error,
    validate_name,
    validate_ref,
)
from app.services.git.process_runner import ProcessRunner

logger = logging.getLogger(__name__)


def build_auth_url(owner: str, repo: str, token: str) -> str:
    """Build an HTTPS clone URL with the token embedded as credentials."""
    return f"https://oauth2:{token}@{GITHUB_CLONE_HOST}/{owner}/{repo}.git"


class RepositoryMirror:
    """
    Manages the on-disk bare mirrors used for merge-base and range-diff.

    Clone and fetch for the same mirror path are serialized with a per-path
    asyncio lock: concurrent `git fetch --depth` runs contend on the
    repository's shallow file.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        cache_dir: str | Path | None = None,
        fetch_depth: int | None = None,
        deep_fetch_depth: int | None = None,
    ):
        self.runner = runner
        self.cache_dir = Path(cache_dir or settings.git_cache_dir)
        self.fetch_depth = fetch_depth or settings.git_fetch_depth
        self.deep_fetch_depth = deep_fetch_depth or settings.git_fetch_deep_depth
        self._locks: defaultdict[Path, asyncio.Lock] = defaultdict(asyncio.Lock)

    def repo_path(self, owner: str, repo: str) -> Path:
        """Get the path of the bare mirror for owner/repo."""
        validate_name("owner", owner)
        validate_name("repo", repo)
        return self.cache_dir / owner / f"{repo}.git"

    async def ensure_mirror(self, owner: str, repo: str, token: str) -> Path:
        """
        Create the bare mirror if it does not exist yet.

        Idempotent: an existing mirror directory is left untouched.

        Returns:
            Path of the mirror

        Raises:
            GitCloneError: If `git clone --bare` fails
        """
        repo_path = self.repo_path(owner, repo)

        async with self._locks[repo_path]:
            if repo_path.exists():
                return repo_path

            repo_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Cloning bare mirror for {owner}/{repo}")
            auth_url = build_auth_url(owner, repo, token)
            try:
                await self.runner.execute(
                    ["clone", "--bare", auth_url, str(repo_path)],
                    repo_path.parent,
                    token=token,
                )
            except GitCommandError as e:
                message = sanitize_error(e.message, token)
                logger.error(f"Clone of {owner}/{repo} failed: {message}")
                raise GitCloneError(
                    f"Failed to clone repository: {message}", exit_code=e.exit_code
                ) from None

        return repo_path

    async def fetch_refs(
        self,
        owner: str,
        repo: str,
        refs: list[str],
        token: str,
        depth: int | None = None,
    ) -> None:
        """
        Fetch refs into the mirror at a bounded depth.

        A failure caused by a too-shallow history is retried exactly once at
        the deep fetch depth. Histories deeper than both bounds fail.

        Raises:
            GitFetchError: Naming the refs, if the fetch (or its retry) fails
        """
        for ref in refs:
            validate_ref(ref)
        repo_path = self.repo_path(owner, repo)
        auth_url = build_auth_url(owner, repo, token)
        fetch_depth = depth or self.fetch_depth
        ref_list = ", ".join(refs)

        async with self._locks[repo_path]:
            try:
                await self._fetch(repo_path, auth_url, refs, fetch_depth, token)
                return
            except GitCommandError as e:
                message = sanitize_error(e.message, token)
                if not is_shallow_error(message):
                    raise GitFetchError(
                        f"Failed to fetch refs ({ref_list}): {message}",
                        refs=refs,
                        exit_code=e.exit_code,
                    ) from None

            logger.info(
                f"Shallow fetch failed for {owner}/{repo}, "
                f"retrying with depth {self.deep_fetch_depth}"
            )
            try:
                await self._fetch(repo_path, auth_url, refs, self.deep_fetch_depth, token)
            except GitCommandError as e:
                message = sanitize_error(e.message, token)
                raise GitFetchError(
                    f"Failed to fetch refs ({ref_list}) even with deep fetch: {message}",
                    refs=refs,
                    exit_code=e.exit_code,
                ) from None

    async def _fetch(
        self,
        repo_path: Path,
        auth_url: str,
        refs: list[str],
        depth: int,
        token: str,
    ) -> None:
        await self.runner.execute(
            ["fetch", auth_url, "--depth", str(depth), *refs],
            repo_path,
            token=token,
        )
