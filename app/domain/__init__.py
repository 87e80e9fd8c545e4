from app.domain.range_diff_preference_operations import range_diff_preference_ops
from app.domain.revision_operations import revision_ops

__all__ = [
    "revision_ops",
    "range_diff_preference_ops",
]
