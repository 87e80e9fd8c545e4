"""Add pr_revisions ledger and range_diff_preferences tables

Revision ID: a3f1c9d2e4b6
Revises:
Create Date: 2026-10-19 12:00:00.000000

pr_revisions records every head commit a pull request has had, including
heads replaced by force pushes. Rows are append-only; merge_base_sha is
filled lazily, once, the first time a revision takes part in a range-diff.

range_diff_preferences stores, per GitHub user and repository, whether the
confirmation before the first merge-base computation (which clones the
repository) is skipped.
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a3f1c9d2e4b6"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "pr_revisions",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("gen_random_uuid()"),
            nullable=False,
        ),
        sa.Column("owner", sa.String(100), nullable=False),
        sa.Column("repo", sa.String(100), nullable=False),
        sa.Column("pr_number", sa.Integer(), nullable=False),
        sa.Column("head_sha", sa.String(64), nullable=False),
        sa.Column("head_ref", sa.String(255), nullable=False),
        sa.Column("base_sha", sa.String(64), nullable=False),
        sa.Column("base_ref", sa.String(255), nullable=False),
        sa.Column("merge_base_sha", sa.String(64), nullable=True),
        sa.Column(
            "seen_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "owner",
            "repo",
            "pr_number",
            "head_sha",
            name="uq_pr_revisions_owner_repo_pr_head",
        ),
    )
    op.create_index("ix_pr_revisions_id", "pr_revisions", ["id"])
    op.create_index(
        "ix_pr_revisions_lookup_seen_at",
        "pr_revisions",
        ["owner", "repo", "pr_number", "seen_at"],
    )

    op.create_table(
        "range_diff_preferences",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("repo_full_name", sa.String(200), nullable=False),
        sa.Column("skip_confirm", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("user_id", "repo_full_name"),
    )


def downgrade() -> None:
    op.drop_table("range_diff_preferences")
    op.drop_index("ix_pr_revisions_lookup_seen_at", table_name="pr_revisions")
    op.drop_index("ix_pr_revisions_id", table_name="pr_revisions")
    op.drop_table("pr_revisions")
