"""
GitHub API read operations.

Provides the read-only calls the revision tracker needs:
- The user behind a token
- Pull request head/base details
- The pull request issue timeline (force-push history)
"""

import logging
from typing import Any

from app.config import settings
from app.services.github.cache import cached_github_call, user_cache
from app.services.github.constants import API_VERSION, TIMELINE_PER_PAGE
from app.services.github.helpers import handle_error_response, has_next_page
from app.services.github.http_client import get_github_client
from app.services.github.timeline_types import PRTimelineEvent
from app.services.github.types import GitHubUser, PullRequestInfo

logger = logging.getLogger(__name__)


class GitHubReadOperations:
    """
    Read-only operations for GitHub API.

    Uses a shared HTTP client singleton for connection pooling; the token is
    sent per request.
    """

    def __init__(self, token: str):
        self.token = token
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }

    @cached_github_call(user_cache)
    async def get_authenticated_user(self) -> GitHubUser:
        """
        Fetch the user this token authenticates as.

        Cached per token for a few minutes since it is resolved on every request.
        """
        client = get_github_client()
        response = await client.get("/user", headers=self._headers, timeout=10.0)
        handle_error_response(response, "user")

        data = response.json()
        return GitHubUser(id=data["id"], login=data["login"])

    async def get_pull_request(self, owner: str, repo: str, number: int) -> PullRequestInfo:
        """
        Fetch the current head and base of a pull request.

        Args:
            owner: Repository owner (username or org)
            repo: Repository name
            number: Pull request number

        Returns:
            PullRequestInfo with head/base SHAs and ref names
        """
        client = get_github_client()
        response = await client.get(
            f"/repos/{owner}/{repo}/pulls/{number}",
            headers=self._headers,
        )
        handle_error_response(response, f"{owner}/{repo}#{number}")

        data = response.json()
        return PullRequestInfo(
            number=data["number"],
            head_sha=data["head"]["sha"],
            head_ref=data["head"]["ref"],
            base_sha=data["base"]["sha"],
            base_ref=data["base"]["ref"],
        )

    async def get_pr_timeline(
        self,
        owner: str,
        repo: str,
        number: int,
        max_pages: int | None = None,
    ) -> list[PRTimelineEvent]:
        """
        Fetch the issue timeline for a pull request, following pagination.

        Args:
            owner: Repository owner (username or org)
            repo: Repository name
            number: Pull request number
            max_pages: Upper bound on pages fetched (defaults to settings)

        Returns:
            Timeline events in the order GitHub returns them (oldest first)
        """
        max_pages = max_pages or settings.github_timeline_max_pages
        client = get_github_client()
        events: list[PRTimelineEvent] = []

        for page in range(1, max_pages + 1):
            response = await client.get(
                f"/repos/{owner}/{repo}/issues/{number}/timeline",
                headers=self._headers,
                params={"per_page": TIMELINE_PER_PAGE, "page": page},
            )
            handle_error_response(response, f"{owner}/{repo}#{number}")

            events.extend(self._normalize_event(item) for item in response.json())

            if not has_next_page(response):
                break
        else:
            logger.warning(
                f"Timeline for {owner}/{repo}#{number} truncated at {max_pages} pages"
            )

        return events

    @staticmethod
    def _normalize_event(data: dict[str, Any]) -> PRTimelineEvent:
        """Convert a timeline item to PRTimelineEvent.

        Commit items carry `author.date` instead of `created_at`.
        """
        timestamp = data.get("created_at") or (data.get("author") or {}).get("date") or ""
        return PRTimelineEvent(
            event_type=data.get("event", ""),
            timestamp=timestamp,
            commit_id=data.get("commit_id"),
        )
