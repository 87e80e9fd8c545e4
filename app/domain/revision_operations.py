"""Domain operations for the pull request revision ledger."""

import logging
import uuid as uuid_pkg
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value
from sqlmodel import col

from app.models.pr_revision import PRRevision

logger = logging.getLogger(__name__)


class RevisionOperations:
    """
    Operations for PRRevision rows.

    Note: This doesn't extend a generic CRUD base because the ledger is
    append-only: there is no update or delete, only insert-if-absent and
    a single write-once field.
    """

    def __init__(self) -> None:
        self.model = PRRevision

    async def get(self, db: AsyncSession, id: uuid_pkg.UUID) -> PRRevision | None:
        """Get a single revision by ID."""
        statement = select(PRRevision).where(col(PRRevision.id) == id)
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def list_for_pull_request(
        self,
        db: AsyncSession,
        owner: str,
        repo: str,
        pr_number: int,
    ) -> list[PRRevision]:
        """Get every known revision of a pull request, most recently seen first."""
        statement = (
            select(PRRevision)
            .where(
                col(PRRevision.owner) == owner,
                col(PRRevision.repo) == repo,
                col(PRRevision.pr_number) == pr_number,
            )
            .order_by(col(PRRevision.seen_at).desc())
        )
        result = await db.execute(statement)
        return list(result.scalars().all())

    async def record(
        self,
        db: AsyncSession,
        owner: str,
        repo: str,
        pr_number: int,
        head_sha: str,
        head_ref: str,
        base_sha: str,
        base_ref: str,
        seen_at: datetime | None = None,
    ) -> bool:
        """
        Record a head commit for a pull request unless it is already known.

        A single INSERT ... ON CONFLICT DO NOTHING on the
        (owner, repo, pr_number, head_sha) constraint, so a row is either
        written whole or not at all. Existing rows are never overwritten.

        Args:
            seen_at: When the head was observed (timeline timestamp for
                backfilled revisions); defaults to now() in the database

        Returns:
            True if a new row was inserted, False for a duplicate.
        """
        values: dict[str, object] = {
            "owner": owner,
            "repo": repo,
            "pr_number": pr_number,
            "head_sha": head_sha,
            "head_ref": head_ref,
            "base_sha": base_sha,
            "base_ref": base_ref,
        }
        if seen_at is not None:
            values["seen_at"] = seen_at

        stmt = (
            insert(self.model)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["owner", "repo", "pr_number", "head_sha"])
            .returning(col(PRRevision.id))
        )

        result = await db.execute(stmt)
        inserted = result.scalar_one_or_none() is not None
        await db.flush()

        if inserted:
            logger.debug(f"Recorded revision {head_sha[:7]} for {owner}/{repo}#{pr_number}")
        return inserted

    async def set_merge_base(
        self,
        db: AsyncSession,
        revision: PRRevision,
        merge_base_sha: str,
    ) -> PRRevision:
        """
        Store the merge-base of a revision if none is stored yet.

        The UPDATE is guarded by `merge_base_sha IS NULL`, so concurrent
        requests computing the same value cannot overwrite one another. When
        the guard loses, the stored value is reloaded onto `revision`.
        """
        stmt = (
            update(PRRevision)
            .where(
                col(PRRevision.id) == revision.id,
                col(PRRevision.merge_base_sha).is_(None),
            )
            .values(merge_base_sha=merge_base_sha)
        )
        result = await db.execute(stmt)
        await db.flush()

        if result.rowcount:
            set_committed_value(revision, "merge_base_sha", merge_base_sha)
        else:
            logger.debug(f"Merge-base for revision {revision.id} was already set")
            await db.refresh(revision)
        return revision


revision_ops = RevisionOperations()
