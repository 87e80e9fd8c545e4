"""
Git mirror package.

Usage: `from app.services.git import GitRangeOperations, ProcessRegistry`

Module structure:
- process_runner.py: Subprocess execution, timeouts, live-process registry
- mirror.py: Bare mirror creation and bounded-depth fetches
- range_operations.py: merge-base, range-diff and cross-diff
- helpers.py: Token sanitization and identifier validation
- types.py: Command and diff result types
- exceptions.py: Error taxonomy
- constants.py: Patterns and fixed values
"""

from app.services.git.exceptions import (
    GitCloneError,
    GitCommandError,
    GitError,
    GitFetchError,
    GitLaunchError,
    GitTimeoutError,
    InvalidGitIdentifierError,
    MergeBaseNotFoundError,
)
from app.services.git.helpers import sanitize_error
from app.services.git.mirror import RepositoryMirror, build_auth_url
from app.services.git.process_runner import ProcessRegistry, ProcessRunner
from app.services.git.range_operations import GitRangeOperations
from app.services.git.types import CrossDiffFile, GitCommandResult, RangeDiffResult

__all__ = [
    # Execution
    "ProcessRegistry",
    "ProcessRunner",
    # Mirrors and graph queries
    "RepositoryMirror",
    "GitRangeOperations",
    "build_auth_url",
    "sanitize_error",
    # Exceptions
    "GitError",
    "GitLaunchError",
    "GitTimeoutError",
    "GitCommandError",
    "GitCloneError",
    "GitFetchError",
    "MergeBaseNotFoundError",
    "InvalidGitIdentifierError",
    # Types
    "CrossDiffFile",
    "GitCommandResult",
    "RangeDiffResult",
]
