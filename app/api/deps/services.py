"""Dependencies exposing the application-scoped git services."""

from fastapi import Request

from app.services.revisions import RangeDiffOrchestrator


def get_range_diff_orchestrator(request: Request) -> RangeDiffOrchestrator:
    """Get the orchestrator built during application startup."""
    orchestrator: RangeDiffOrchestrator = request.app.state.range_diff_orchestrator
    return orchestrator
