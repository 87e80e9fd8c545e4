from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import col

from app.models.range_diff_preference import RangeDiffPreference


def repo_key(owner: str, repo: str) -> str:
    return f"{owner}/{repo}"


class RangeDiffPreferenceOperations:
    """Operations for RangeDiffPreference model (the range-diff confirmation gate)."""

    async def get(
        self,
        db: AsyncSession,
        user_id: int,
        owner: str,
        repo: str,
    ) -> RangeDiffPreference | None:
        """Get the stored preference for a user and repository."""
        statement = select(RangeDiffPreference).where(
            col(RangeDiffPreference.user_id) == user_id,
            col(RangeDiffPreference.repo_full_name) == repo_key(owner, repo),
        )
        result = await db.execute(statement)
        return result.scalar_one_or_none()

    async def get_skip_confirm(
        self,
        db: AsyncSession,
        user_id: int,
        owner: str,
        repo: str,
    ) -> bool:
        """Check whether the user opted out of confirmation for this repository.

        Defaults to False when no preference has been stored.
        """
        prefs = await self.get(db, user_id, owner, repo)
        return bool(prefs and prefs.skip_confirm)

    async def set_skip_confirm(
        self,
        db: AsyncSession,
        user_id: int,
        owner: str,
        repo: str,
        skip: bool,
    ) -> None:
        """Create or update the preference (upsert on user + repository)."""
        stmt = (
            insert(RangeDiffPreference)
            .values(user_id=user_id, repo_full_name=repo_key(owner, repo), skip_confirm=skip)
            .on_conflict_do_update(
                index_elements=["user_id", "repo_full_name"],
                set_={"skip_confirm": skip, "updated_at": func.now()},
            )
        )
        await db.execute(stmt)
        await db.flush()


range_diff_preference_ops = RangeDiffPreferenceOperations()
