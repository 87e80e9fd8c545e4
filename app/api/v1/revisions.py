"""
Pull request revision endpoints.

Lists the head commits a pull request has had (including force-pushed
ones), and compares any two of them with `git range-diff`.
"""

import logging
import uuid as uuid_pkg
from datetime import datetime
from typing import Literal

import httpx
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import GitHubIdentity, get_db, get_github_identity, get_range_diff_orchestrator
from app.core.exceptions import NotFoundError, UpstreamError, ValidationError
from app.domain.range_diff_preference_operations import range_diff_preference_ops
from app.domain.revision_operations import revision_ops
from app.services.git import (
    GitError,
    GitLaunchError,
    GitTimeoutError,
    InvalidGitIdentifierError,
    MergeBaseNotFoundError,
)
from app.services.git.helpers import validate_name
from app.services.github import GitHubAPIError, GitHubReadOperations
from app.services.revisions import (
    ConfirmationRequired,
    RangeDiffOrchestrator,
    RangeDiffOutcome,
    RevisionNotFoundError,
    backfill_revisions,
)

router = APIRouter(prefix="/pulls/{owner}/{repo}/{number}", tags=["revisions"])
logger = logging.getLogger(__name__)


# --- Response Models ---


class RevisionRead(BaseModel):
    """One recorded head of a pull request."""

    id: uuid_pkg.UUID
    head_sha: str
    head_ref: str
    base_sha: str
    base_ref: str
    merge_base_sha: str | None
    seen_at: datetime

    class Config:
        from_attributes = True


class RevisionListResponse(BaseModel):
    """Revisions of a pull request, most recently seen first."""

    revisions: list[RevisionRead]
    backfill_status: Literal["complete", "degraded"]
    backfill_error: str | None = None


class RangeDiffResponse(BaseModel):
    """Range-diff result, or a request to confirm the merge-base computation."""

    status: Literal["confirmation_required", "done"]
    from_revision: RevisionRead
    to_revision: RevisionRead
    output: str | None = None
    has_changes: bool | None = None


class RangeDiffConfirmRequest(BaseModel):
    """Confirmation of a range-diff that needs merge-bases computed."""

    dont_ask_again: bool = False


class RangeDiffPreferenceUpdate(BaseModel):
    """Whether to skip the range-diff confirmation for this repository."""

    skip_confirm: bool


class RangeDiffPreferenceRead(BaseModel):
    repo_full_name: str
    skip_confirm: bool


class CrossDiffFileRead(BaseModel):
    """One file changed between two revision heads."""

    filename: str
    status: str
    additions: int
    deletions: int
    patch: str | None = None


# --- Helper Functions ---


def validate_repo(owner: str, repo: str) -> None:
    """Reject malformed owner/repo before anything touches git or the database."""
    try:
        validate_name("owner", owner)
        validate_name("repo", repo)
    except InvalidGitIdentifierError as e:
        raise ValidationError(e.message) from None


def git_error_to_http(e: GitError) -> HTTPException:
    """Map a git failure to an HTTP error. Messages are already sanitized."""
    if isinstance(e, InvalidGitIdentifierError):
        return ValidationError(e.message)
    if isinstance(e, MergeBaseNotFoundError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    if isinstance(e, GitTimeoutError):
        return UpstreamError(e.message, status.HTTP_504_GATEWAY_TIMEOUT)
    if isinstance(e, GitLaunchError):
        return UpstreamError("Git is unavailable", status.HTTP_503_SERVICE_UNAVAILABLE)
    return UpstreamError(f"Failed to compute range-diff: {e.message}")


def github_error_to_http(e: GitHubAPIError) -> HTTPException:
    if e.status_code in (401, 404):
        return HTTPException(status_code=e.status_code, detail=e.message)
    return UpstreamError(e.message)


def outcome_to_response(outcome: RangeDiffOutcome) -> RangeDiffResponse:
    from_revision = RevisionRead.model_validate(outcome.from_revision)
    to_revision = RevisionRead.model_validate(outcome.to_revision)
    if isinstance(outcome, ConfirmationRequired):
        return RangeDiffResponse(
            status="confirmation_required",
            from_revision=from_revision,
            to_revision=to_revision,
        )
    return RangeDiffResponse(
        status="done",
        from_revision=from_revision,
        to_revision=to_revision,
        output=outcome.output,
        has_changes=outcome.has_changes,
    )


async def run_comparison(
    orchestrator: RangeDiffOrchestrator,
    db: AsyncSession,
    owner: str,
    repo: str,
    number: int,
    from_id: uuid_pkg.UUID,
    to_id: uuid_pkg.UUID,
    identity: GitHubIdentity,
    confirmed: bool = False,
) -> RangeDiffResponse:
    try:
        outcome = await orchestrator.compare_revisions(
            db,
            owner,
            repo,
            number,
            from_id,
            to_id,
            user_id=identity.user_id,
            token=identity.token,
            confirmed=confirmed,
        )
    except RevisionNotFoundError:
        raise NotFoundError("Revision") from None
    except GitError as e:
        raise git_error_to_http(e) from None
    return outcome_to_response(outcome)


# --- Endpoints ---


@router.get("/revisions", response_model=RevisionListResponse)
async def list_revisions(
    owner: str,
    repo: str,
    number: int,
    identity: GitHubIdentity = Depends(get_github_identity),
    db: AsyncSession = Depends(get_db),
) -> RevisionListResponse:
    """
    List every known head of a pull request.

    Fetches the pull request, then records its current head and any
    force-pushed heads from the timeline. Timeline failures only degrade
    the result; the revisions already recorded are still returned.
    """
    validate_repo(owner, repo)
    github = GitHubReadOperations(identity.token)

    try:
        pull = await github.get_pull_request(owner, repo, number)
    except GitHubAPIError as e:
        raise github_error_to_http(e) from None
    except httpx.HTTPError as e:
        logger.warning(f"GitHub request for {owner}/{repo}#{number} failed: {e!r}")
        raise UpstreamError(f"Failed to reach GitHub: {type(e).__name__}") from None

    backfill = await backfill_revisions(
        db,
        github,
        owner=owner,
        repo=repo,
        pr_number=number,
        base_ref=pull.base_ref,
        base_sha=pull.base_sha,
        head_ref=pull.head_ref,
        current_head_sha=pull.head_sha,
    )

    revisions = await revision_ops.list_for_pull_request(db, owner, repo, number)
    return RevisionListResponse(
        revisions=[RevisionRead.model_validate(r) for r in revisions],
        backfill_status=backfill.status,
        backfill_error=backfill.error,
    )


@router.get("/range-diff/{from_id}/{to_id}", response_model=RangeDiffResponse)
async def get_range_diff(
    owner: str,
    repo: str,
    number: int,
    from_id: uuid_pkg.UUID,
    to_id: uuid_pkg.UUID,
    identity: GitHubIdentity = Depends(get_github_identity),
    db: AsyncSession = Depends(get_db),
    orchestrator: RangeDiffOrchestrator = Depends(get_range_diff_orchestrator),
) -> RangeDiffResponse:
    """
    Compare two revisions with `git range-diff`.

    Returns status "confirmation_required" (and computes nothing) when a
    merge-base is missing and the user has not opted out of confirming.
    """
    validate_repo(owner, repo)
    return await run_comparison(
        orchestrator, db, owner, repo, number, from_id, to_id, identity
    )


@router.post("/range-diff/{from_id}/{to_id}/confirm", response_model=RangeDiffResponse)
async def confirm_range_diff(
    owner: str,
    repo: str,
    number: int,
    from_id: uuid_pkg.UUID,
    to_id: uuid_pkg.UUID,
    body: RangeDiffConfirmRequest,
    identity: GitHubIdentity = Depends(get_github_identity),
    db: AsyncSession = Depends(get_db),
    orchestrator: RangeDiffOrchestrator = Depends(get_range_diff_orchestrator),
) -> RangeDiffResponse:
    """Confirm and run a range-diff, optionally skipping confirmation from now on."""
    validate_repo(owner, repo)
    if body.dont_ask_again:
        await range_diff_preference_ops.set_skip_confirm(
            db, identity.user_id, owner, repo, skip=True
        )
        await db.commit()

    return await run_comparison(
        orchestrator, db, owner, repo, number, from_id, to_id, identity, confirmed=True
    )


@router.get("/cross-diff/{from_id}/{to_id}", response_model=list[CrossDiffFileRead])
async def get_cross_diff(
    owner: str,
    repo: str,
    number: int,
    from_id: uuid_pkg.UUID,
    to_id: uuid_pkg.UUID,
    identity: GitHubIdentity = Depends(get_github_identity),
    db: AsyncSession = Depends(get_db),
    orchestrator: RangeDiffOrchestrator = Depends(get_range_diff_orchestrator),
) -> list[CrossDiffFileRead]:
    """File-level diff between the heads of two revisions."""
    validate_repo(owner, repo)
    try:
        files = await orchestrator.compare_heads(
            db, owner, repo, number, from_id, to_id, token=identity.token
        )
    except RevisionNotFoundError:
        raise NotFoundError("Revision") from None
    except GitError as e:
        raise git_error_to_http(e) from None

    return [
        CrossDiffFileRead(
            filename=f.filename,
            status=f.status,
            additions=f.additions,
            deletions=f.deletions,
            patch=f.patch,
        )
        for f in files
    ]


preference_router = APIRouter(prefix="/repos/{owner}/{repo}", tags=["revisions"])


@preference_router.put("/range-diff-preference", response_model=RangeDiffPreferenceRead)
async def update_range_diff_preference(
    owner: str,
    repo: str,
    body: RangeDiffPreferenceUpdate,
    identity: GitHubIdentity = Depends(get_github_identity),
    db: AsyncSession = Depends(get_db),
) -> RangeDiffPreferenceRead:
    """Set whether range-diffs in this repository skip the confirmation step."""
    validate_repo(owner, repo)
    await range_diff_preference_ops.set_skip_confirm(
        db, identity.user_id, owner, repo, skip=body.skip_confirm
    )
    return RangeDiffPreferenceRead(
        repo_full_name=f"{owner}/{repo}", skip_confirm=body.skip_confirm
    )
