"""
GitHub service package.

Usage: `from app.services.github import GitHubReadOperations, PRTimelineEvent`

Module structure:
- read_operations.py: Read-only API operations (user, pull request, timeline)
- helpers.py: Rate limit handling and error utilities
- http_client.py: Shared pooled HTTP client
- cache.py: Per-token TTL caches
- types.py / timeline_types.py: Data types and response models
- exceptions.py: Custom exceptions
- constants.py: API constants and configuration
"""

from app.services.github.cache import clear_all_caches as clear_github_caches
from app.services.github.exceptions import GitHubAPIError
from app.services.github.helpers import RateLimitInfo, handle_error_response
from app.services.github.http_client import close_github_client
from app.services.github.read_operations import GitHubReadOperations
from app.services.github.timeline_types import PRTimelineEvent
from app.services.github.types import GitHubUser, PullRequestInfo

__all__ = [
    # Operations
    "GitHubReadOperations",
    # HTTP client lifecycle
    "close_github_client",
    # Cache management
    "clear_github_caches",
    # Utilities
    "handle_error_response",
    "RateLimitInfo",
    # Exceptions
    "GitHubAPIError",
    # Types
    "GitHubUser",
    "PRTimelineEvent",
    "PullRequestInfo",
]
