"""Global test fixtures and utilities for mindquest tests"""
import random
from unittest.mock import AsyncMock

import pytest

from mindquest.db.document_store import InMemoryDocumentStore
from mindquest.exceptions import GenerationError
from mindquest.models.progress import UserProgress
from tests.helpers import TODAY, fixed_clock, make_daily_content, make_daily_fitness


# ============================================================================
# User Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123"


@pytest.fixture
def new_user_snapshot():
    """Progress document right after onboarding"""
    return UserProgress(
        display_name="Ada",
        avatar_url="https://example.com/avatar.png",
        main_path="resilience",
    ).to_document()


@pytest.fixture
def active_snapshot(new_user_snapshot):
    """Progress document with today's content already generated"""
    snapshot = dict(new_user_snapshot)
    snapshot.update({
        "dailyContent": make_daily_content(),
        "dailyFitness": make_daily_fitness(),
        "hydration": {"level": 0, "lastLogDate": TODAY},
        "unlockedNodes": ["r1"],
    })
    return snapshot


# ============================================================================
# Infrastructure Fixtures
# ============================================================================

@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def store():
    """Fresh in-memory document store"""
    return InMemoryDocumentStore()


@pytest.fixture
def failing_generation_client():
    """Generation client whose every call fails"""
    client = AsyncMock()
    client.generate_model = AsyncMock(side_effect=GenerationError(message="endpoint unavailable"))
    client.generate_text = AsyncMock(side_effect=GenerationError(message="endpoint unavailable"))
    return client


@pytest.fixture
def generation_client():
    """Generation client mock; tests set return values as needed"""
    return AsyncMock()


@pytest.fixture
def rng():
    return random.Random(42)
