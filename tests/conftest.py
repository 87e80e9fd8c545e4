"""Root conftest — shared fixtures for all backend tests.

Provides:
- Autouse reset of the GitHub TTL caches
- A per-test git cache directory
- API client with dependency overrides (identity, db, orchestrator)
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.services.github.cache import clear_all_caches

from tests.helpers.auth import make_identity
from tests.helpers.mock_factories import make_mock_session


@pytest.fixture(autouse=True)
def _clear_github_caches():
    """Clear GitHub TTL caches before each test to prevent cross-test pollution."""
    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
def git_cache_dir(tmp_path):
    """Empty directory standing in for the mirror cache."""
    path = tmp_path / "git-cache"
    path.mkdir()
    return path


@pytest.fixture
def mock_db():
    return make_mock_session()


@pytest.fixture
def mock_orchestrator():
    orchestrator = MagicMock()
    orchestrator.compare_revisions = AsyncMock()
    orchestrator.compare_heads = AsyncMock()
    return orchestrator


@pytest.fixture
async def api_client(mock_db, mock_orchestrator):
    """HTTP client against the app with auth, db and git services overridden."""
    from app.api.deps import (
        get_db,
        get_github_identity,
        get_range_diff_orchestrator,
    )
    from app.main import app

    async def override_identity():
        return make_identity()

    async def override_db():
        yield mock_db

    app.dependency_overrides[get_github_identity] = override_identity
    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_range_diff_orchestrator] = lambda: mock_orchestrator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
