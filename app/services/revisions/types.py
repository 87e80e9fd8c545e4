"""Result types for revision backfill and range-diff comparison."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Literal

from app.models.pr_revision import PRRevision


class RangeDiffStage(str, Enum):
    """Stages of a range-diff comparison."""

    NEED_ANCESTOR_CONFIRM = "need_ancestor_confirm"
    COMPUTING_ANCESTORS = "computing_ancestors"
    COMPUTING_RANGE = "computing_range"
    DONE = "done"
    FAILED = "failed"


@dataclass
class HeadRevision:
    """A head commit observed for a pull request, before it is recorded."""

    sha: str
    seen_at: datetime


@dataclass
class BackfillResult:
    """
    Outcome of reconstructing revision history from the timeline.

    "degraded" means the timeline or the ledger could not be reached; the
    caller carries on with whatever revisions were already known.
    """

    status: Literal["complete", "degraded"]
    discovered: int = 0
    recorded: int = 0
    error: str | None = None

    @property
    def is_degraded(self) -> bool:
        return self.status == "degraded"


@dataclass
class ConfirmationRequired:
    """The comparison needs merge-bases that would trigger a clone/fetch."""

    from_revision: PRRevision
    to_revision: PRRevision
    stage: RangeDiffStage = RangeDiffStage.NEED_ANCESTOR_CONFIRM


@dataclass
class RangeDiffComparison:
    """A completed range-diff between two revisions."""

    from_revision: PRRevision
    to_revision: PRRevision
    output: str
    has_changes: bool
    stage: RangeDiffStage = RangeDiffStage.DONE


RangeDiffOutcome = ConfirmationRequired | RangeDiffComparison
