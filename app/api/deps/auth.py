"""GitHub bearer-token authentication dependency.

Callers authenticate with their own GitHub token; the token is both the
identity (resolved through GitHub's /user endpoint) and the credential
used to clone and fetch mirrors on their behalf.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.services.github import GitHubAPIError, GitHubReadOperations

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class GitHubIdentity:
    """The authenticated GitHub user and the token they sent."""

    user_id: int
    login: str
    token: str


async def get_github_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> GitHubIdentity:
    """Resolve the bearer token to a GitHub user.

    Raises:
        HTTPException 401: Missing, invalid or expired token
        HTTPException 502: GitHub could not be reached
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing GitHub token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = credentials.credentials
    try:
        user = await GitHubReadOperations(token).get_authenticated_user()
    except GitHubAPIError as e:
        if e.status_code == 401:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired GitHub token",
                headers={"WWW-Authenticate": "Bearer"},
            ) from None
        logger.warning(f"GitHub identity lookup failed: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not verify GitHub token",
        ) from None

    return GitHubIdentity(user_id=user.id, login=user.login, token=token)
