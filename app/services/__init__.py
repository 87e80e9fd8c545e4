# Services package

from app.services.git import GitRangeOperations, ProcessRegistry, ProcessRunner, RepositoryMirror
from app.services.github import GitHubReadOperations
from app.services.revisions import RangeDiffOrchestrator, backfill_revisions

__all__ = [
    # Git mirrors
    "GitRangeOperations",
    "ProcessRegistry",
    "ProcessRunner",
    "RepositoryMirror",
    # GitHub API
    "GitHubReadOperations",
    # Revision tracking
    "RangeDiffOrchestrator",
    "backfill_revisions",
]
