"""
Pull request revision tracking.

- backfill.py: Rebuilds revision history from the GitHub timeline
- orchestrator.py: Confirmation gate, merge-base caching and range-diff
- types.py: Result types and comparison stages
"""

from app.services.revisions.backfill import backfill_revisions, collect_head_revisions
from app.services.revisions.exceptions import RevisionNotFoundError
from app.services.revisions.orchestrator import RangeDiffOrchestrator
from app.services.revisions.types import (
    BackfillResult,
    ConfirmationRequired,
    HeadRevision,
    RangeDiffComparison,
    RangeDiffOutcome,
    RangeDiffStage,
)

__all__ = [
    "RangeDiffOrchestrator",
    "backfill_revisions",
    "collect_head_revisions",
    "RevisionNotFoundError",
    "BackfillResult",
    "ConfirmationRequired",
    "HeadRevision",
    "RangeDiffComparison",
    "RangeDiffOutcome",
    "RangeDiffStage",
]
