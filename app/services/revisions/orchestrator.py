"""
Range-diff orchestration between two recorded revisions.

Flow for one comparison:
1. Load both revisions from the ledger
2. If a merge-base is missing and the user has not opted out, stop and ask
   for confirmation (computing it may clone the whole repository)
3. Compute each missing merge-base and persist it (once, never recomputed)
4. Run `git range-diff` over merge_base..head of both revisions

The range-diff text itself is never stored: it depends on an arbitrary
pair of revisions and is cheap once the mirror and merge-bases exist.
"""

import logging
import uuid as uuid_pkg

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.range_diff_preference_operations import range_diff_preference_ops
from app.domain.revision_operations import revision_ops
from app.models.pr_revision import PRRevision
from app.services.git import CrossDiffFile, GitRangeOperations
from app.services.revisions.exceptions import RevisionNotFoundError
from app.services.revisions.types import (
    ConfirmationRequired,
    RangeDiffComparison,
    RangeDiffOutcome,
    RangeDiffStage,
)

logger = logging.getLogger(__name__)


class RangeDiffOrchestrator:
    """Compares two revisions of one pull request."""

    def __init__(self, git_ops: GitRangeOperations):
        self.git_ops = git_ops

    async def load_revision_pair(
        self,
        db: AsyncSession,
        owner: str,
        repo: str,
        pr_number: int,
        from_revision_id: uuid_pkg.UUID,
        to_revision_id: uuid_pkg.UUID,
    ) -> tuple[PRRevision, PRRevision]:
        """Load two revisions, both of which must belong to owner/repo#pr_number.

        Raises:
            RevisionNotFoundError: If either is missing or from another pull request
        """
        key = (owner, repo, pr_number)
        revisions = []
        for revision_id in (from_revision_id, to_revision_id):
            revision = await revision_ops.get(db, revision_id)
            if revision is None or (revision.owner, revision.repo, revision.pr_number) != key:
                raise RevisionNotFoundError(revision_id)
            revisions.append(revision)
        return revisions[0], revisions[1]

    async def compare_revisions(
        self,
        db: AsyncSession,
        owner: str,
        repo: str,
        pr_number: int,
        from_revision_id: uuid_pkg.UUID,
        to_revision_id: uuid_pkg.UUID,
        user_id: int,
        token: str,
        confirmed: bool = False,
    ) -> RangeDiffOutcome:
        """
        Compute the range-diff between two revisions.

        Args:
            user_id: GitHub user ID, for the confirmation preference lookup
            token: GitHub token used to clone/fetch the mirror
            confirmed: The user confirmed this one request explicitly

        Returns:
            ConfirmationRequired if merge-bases are missing and neither
            `confirmed` nor the stored preference allows computing them;
            otherwise the RangeDiffComparison.

        Raises:
            RevisionNotFoundError: If either revision is not part of this pull request
            GitError: Any failure while computing merge-bases or the range-diff
        """
        from_rev, to_rev = await self.load_revision_pair(
            db, owner, repo, pr_number, from_revision_id, to_revision_id
        )

        missing = [from_rev] if from_rev.merge_base_sha is None else []
        if to_rev.merge_base_sha is None and to_rev.id != from_rev.id:
            missing.append(to_rev)

        if missing and not confirmed:
            skip = await range_diff_preference_ops.get_skip_confirm(db, user_id, owner, repo)
            if not skip:
                logger.debug(f"Range-diff for {owner}/{repo} needs confirmation")
                return ConfirmationRequired(from_revision=from_rev, to_revision=to_rev)

        stage = RangeDiffStage.COMPUTING_ANCESTORS
        try:
            for revision in missing:
                await self._compute_merge_base(db, revision, token)
            if missing:
                # Keep computed merge-bases even if the range-diff below fails
                await db.commit()

            stage = RangeDiffStage.COMPUTING_RANGE
            result = await self.git_ops.compute_range_diff(
                owner,
                repo,
                old_base=from_rev.merge_base_sha or "",
                old_head=from_rev.head_sha,
                new_base=to_rev.merge_base_sha or "",
                new_head=to_rev.head_sha,
                token=token,
            )
        except Exception as e:
            logger.warning(
                f"Range-diff for {owner}/{repo}: {stage.value} -> "
                f"{RangeDiffStage.FAILED.value}: {e}"
            )
            raise

        return RangeDiffComparison(
            from_revision=from_rev,
            to_revision=to_rev,
            output=result.output,
            has_changes=result.has_changes,
        )

    async def compare_heads(
        self,
        db: AsyncSession,
        owner: str,
        repo: str,
        pr_number: int,
        from_revision_id: uuid_pkg.UUID,
        to_revision_id: uuid_pkg.UUID,
        token: str,
    ) -> list[CrossDiffFile]:
        """File-level two-dot diff between the heads of two revisions."""
        from_rev, to_rev = await self.load_revision_pair(
            db, owner, repo, pr_number, from_revision_id, to_revision_id
        )
        return await self.git_ops.compute_cross_diff(
            owner, repo, from_rev.head_sha, to_rev.head_sha, token
        )

    async def _compute_merge_base(
        self,
        db: AsyncSession,
        revision: PRRevision,
        token: str,
    ) -> None:
        logger.info(
            f"Computing merge-base for revision {revision.id} ({revision.head_sha[:7]})"
        )
        merge_base = await self.git_ops.compute_merge_base(
            revision.owner,
            revision.repo,
            revision.base_sha,
            revision.head_sha,
            token,
        )
        await revision_ops.set_merge_base(db, revision, merge_base)
