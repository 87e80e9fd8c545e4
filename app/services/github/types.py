"""Data types for GitHub API responses."""

from dataclasses import dataclass


@dataclass
class GitHubUser:
    """The user a token authenticates as."""

    id: int
    login: str


@dataclass
class PullRequestInfo:
    """Head and base of a pull request at the time it was fetched."""

    number: int
    head_sha: str
    head_ref: str
    base_sha: str
    base_ref: str
