from app.api.deps.auth import GitHubIdentity, get_github_identity
from app.api.deps.services import get_range_diff_orchestrator
from app.core.database import get_db

__all__ = [
    "GitHubIdentity",
    "get_db",
    "get_github_identity",
    "get_range_diff_orchestrator",
]
