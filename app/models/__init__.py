from app.models.pr_revision import PRRevision
from app.models.range_diff_preference import RangeDiffPreference

__all__ = [
    "PRRevision",
    "RangeDiffPreference",
]
