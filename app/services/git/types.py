"""Data types for git command results."""

from dataclasses import dataclass


@dataclass
class GitCommandResult:
    """Output of a completed git subprocess."""

    stdout: str
    stderr: str
    exit_code: int


@dataclass
class RangeDiffResult:
    """Output of `git range-diff` between two commit ranges."""

    output: str
    has_changes: bool


@dataclass
class CrossDiffFile:
    """One file changed between two commits (two-dot diff)."""

    filename: str
    status: str  # "added", "removed", "renamed", "copied" or "modified"
    additions: int
    deletions: int
    patch: str | None = None  # Hunks only, starting at the first "@@" line
