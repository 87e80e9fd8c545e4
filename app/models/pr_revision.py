"""Pull request revision ledger model."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, Index, UniqueConstraint, text
from sqlmodel import Field

from app.models.base import UUIDMixin


class PRRevision(UUIDMixin, table=True):
    """
    One head commit a pull request has had.

    Rows are append-only: a force push adds a new row, nothing is deleted.
    The only mutation is filling `merge_base_sha` once, lazily, the first
    time the revision takes part in a range-diff. A merge-base of a fixed
    (base_sha, head_sha) pair never changes, so it is never recomputed.
    """

    __tablename__ = "pr_revisions"
    __table_args__ = (
        UniqueConstraint(
            "owner",
            "repo",
            "pr_number",
            "head_sha",
            name="uq_pr_revisions_owner_repo_pr_head",
        ),
        Index("ix_pr_revisions_lookup_seen_at", "owner", "repo", "pr_number", "seen_at"),
    )

    owner: str = Field(max_length=100, nullable=False)
    repo: str = Field(max_length=100, nullable=False)
    pr_number: int = Field(nullable=False)

    head_sha: str = Field(max_length=64, nullable=False)
    head_ref: str = Field(max_length=255, nullable=False)
    base_sha: str = Field(max_length=64, nullable=False)
    base_ref: str = Field(max_length=255, nullable=False)

    # NULL until first computed; set at most once
    merge_base_sha: str | None = Field(default=None, max_length=64)

    seen_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=lambda: datetime.now(UTC),
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()")},
    )

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"
