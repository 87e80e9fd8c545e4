from datetime import UTC, datetime

from sqlalchemy import BigInteger, Column, DateTime, String, text
from sqlmodel import Field, SQLModel


class RangeDiffPreference(SQLModel, table=True):
    """
    Per-user, per-repository choice to skip the range-diff confirmation.

    The confirmation guards the first bare clone of a repository. Opting out
    applies to every pull request in that repository, not just one.
    """

    __tablename__ = "range_diff_preferences"

    # GitHub user ID
    user_id: int = Field(
        sa_column=Column(BigInteger, primary_key=True, nullable=False),
    )
    # owner/repo
    repo_full_name: str = Field(
        sa_column=Column(String(200), primary_key=True, nullable=False),
    )

    skip_confirm: bool = Field(default=False, nullable=False)

    # Timestamps
    created_at: datetime = Field(  # type: ignore[call-overload]
        default_factory=lambda: datetime.now(UTC),
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"server_default": text("now()")},
    )
    updated_at: datetime | None = Field(  # type: ignore[call-overload]
        default=None,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": text("now()")},
    )
