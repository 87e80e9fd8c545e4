"""GitHub identity helpers for API tests.

Requests in tests never reach GitHub: the identity dependency is overridden
with a fixed user and token built here.
"""

from __future__ import annotations

from app.api.deps import GitHubIdentity

TEST_TOKEN = "ghp_test_token_12345"
TEST_USER_ID = 1001
TEST_LOGIN = "octocat"


def make_identity(
    user_id: int = TEST_USER_ID,
    login: str = TEST_LOGIN,
    token: str = TEST_TOKEN,
) -> GitHubIdentity:
    return GitHubIdentity(user_id=user_id, login=login, token=token)
