"""
Revision history reconstruction.

GitHub keeps no list of a pull request's former heads, but its issue
timeline records every force push with the new head SHA. Replaying those
events rebuilds the ledger for pull requests that were force-pushed before
anyone opened them here.
"""

import logging
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.revision_operations import revision_ops
from app.services.github import GitHubReadOperations, PRTimelineEvent
from app.services.revisions.types import BackfillResult, HeadRevision

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str, fallback: datetime) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return fallback
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def collect_head_revisions(
    events: Iterable[PRTimelineEvent],
    current_head_sha: str,
    now: datetime | None = None,
) -> list[HeadRevision]:
    """
    Derive the ordered head commits of a pull request from its timeline.

    Keeps force-push events that carry a commit, adds the current head (seen
    `now`) if no force push produced it, drops duplicate SHAs (first
    occurrence wins) and sorts oldest first.
    """
    now = now or datetime.now(UTC)
    heads: list[HeadRevision] = []
    seen: set[str] = set()

    for event in events:
        commit_id = event.commit_id
        if not event.is_force_push or not commit_id or commit_id in seen:
            continue
        seen.add(commit_id)
        heads.append(HeadRevision(commit_id, _parse_timestamp(event.timestamp, now)))

    if current_head_sha not in seen:
        heads.append(HeadRevision(current_head_sha, now))

    heads.sort(key=lambda head: head.seen_at)
    return heads


async def backfill_revisions(
    db: AsyncSession,
    github: GitHubReadOperations,
    owner: str,
    repo: str,
    pr_number: int,
    base_ref: str,
    base_sha: str,
    head_ref: str,
    current_head_sha: str,
) -> BackfillResult:
    """
    Record every historical head of a pull request in the ledger.

    Best-effort: if the timeline cannot be fetched the current head is still
    recorded, and if the ledger write fails nothing from this call is kept.
    Either way the failure is logged and reported as a degraded result,
    never raised, so the revision list can still be shown.
    """
    error: str | None = None
    events: list[PRTimelineEvent] = []

    try:
        events = await github.get_pr_timeline(owner, repo, pr_number)
    except Exception as e:
        error = f"Failed to fetch timeline: {e}"
        logger.warning(f"Revision backfill for {owner}/{repo}#{pr_number} degraded: {error}")

    heads = collect_head_revisions(events, current_head_sha)

    recorded = 0
    try:
        async with db.begin_nested():
            for head in heads:
                inserted = await revision_ops.record(
                    db,
                    owner=owner,
                    repo=repo,
                    pr_number=pr_number,
                    head_sha=head.sha,
                    head_ref=head_ref,
                    base_sha=base_sha,
                    base_ref=base_ref,
                    seen_at=head.seen_at,
                )
                recorded += int(inserted)
    except SQLAlchemyError as e:
        logger.error(f"Failed to record revisions for {owner}/{repo}#{pr_number}: {e}")
        return BackfillResult(
            status="degraded",
            discovered=len(heads),
            recorded=0,
            error=f"Failed to record revisions: {type(e).__name__}",
        )

    logger.info(
        f"Backfilled {len(heads)} revisions for {owner}/{repo}#{pr_number} ({recorded} new)"
    )
    return BackfillResult(
        status="degraded" if error else "complete",
        discovered=len(heads),
        recorded=recorded,
        error=error,
    )
