from __future__ import annotations

import pytest

from konnect_core import InMemoryContestStore, Settings


@pytest.fixture
def store() -> InMemoryContestStore:
    return InMemoryContestStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(store_backend="memory", seed_demo_data=False, leaderboard_limit=50)
