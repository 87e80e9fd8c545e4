from dataclasses import dataclass

from app.services.github.constants import FORCE_PUSH_EVENT


@dataclass
class PRTimelineEvent:
    """Pull request timeline event, normalized from the issue timeline API."""

    event_type: str  # "head_ref_force_pushed", "committed", "labeled", ...
    timestamp: str  # ISO 8601
    commit_id: str | None  # New head SHA for force pushes

    @property
    def is_force_push(self) -> bool:
        return self.event_type == FORCE_PUSH_EVENT and bool(self.commit_id)
