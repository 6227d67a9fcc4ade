"""Unit tests for DailyContentService"""
import random
from datetime import date
from unittest.mock import AsyncMock

import httpx
import pytest

from mindquest.exceptions import InvalidGenerationResponseError, WriteError
from mindquest.generation.client import GenerationClient
from mindquest.gamification.content_pools import FALLBACK_BIG_QUEST_TEXT
from mindquest.models.generation import (
    GeneratedBigQuest,
    GeneratedDailyContent,
    GeneratedFitnessPlan,
    GeneratedFitnessTask,
    GeneratedTask,
)
from mindquest.models.results import NoticeKind
from mindquest.services.daily_content_service import (
    FITNESS_FALLBACK_NOTICE,
    TASKS_FALLBACK_NOTICE,
    ContentKind,
    ContentState,
    DailyContentService,
    build_fallback_daily_content,
    build_fallback_fitness,
    build_fallback_tasks,
    user_main_path,
)
from tests.helpers import TODAY, YESTERDAY, make_daily_content, make_daily_fitness


@pytest.fixture
def service(store, failing_generation_client, clock, rng):
    return DailyContentService(store, failing_generation_client, clock=clock, rng=rng)


def generated_daily_content():
    return GeneratedDailyContent(
        daily_tasks=[
            GeneratedTask(category="Resilience", task="Name one thing you handled well.", isJournaling=False),
            GeneratedTask(category="Focus", task="Write about a moment of calm.", isJournaling=True),
            GeneratedTask(category="Positivity", task="Thank someone today.", isJournaling=False),
        ],
        big_quest=GeneratedBigQuest(path="focus", task="Take a mindful ten-minute walk."),
    )


def generated_fitness_plan():
    return GeneratedFitnessPlan(fitness_tasks=[
        GeneratedFitnessTask(level=level, task=f"Move {level}") for level in (5, 3, 1, 4, 2)
    ])


# ============================================================================
# Fallback Pool Tests
# ============================================================================

def test_fallback_tasks_one_per_category_with_one_journaling_task():
    for seed in range(200):
        draws = build_fallback_tasks(random.Random(seed))

        assert [category for category, _ in draws] == ["Resilience", "Focus", "Positivity"]
        assert sum(1 for _, task in draws if task.is_journaling) == 1


def test_fallback_daily_content_uses_user_path():
    content = build_fallback_daily_content("positivity", date(2024, 5, 15), random.Random(1))

    assert content.date == TODAY
    assert content.big_quest.path == "positivity"
    assert content.big_quest.text == FALLBACK_BIG_QUEST_TEXT
    assert content.all_small_tasks_completed is False
    assert len({task.id for task in content.tasks}) == 3


def test_fallback_fitness_levels_in_order():
    fitness = build_fallback_fitness(date(2024, 5, 15), random.Random(3))

    assert [task.level for task in fitness.tasks] == [1, 2, 3, 4, 5]
    assert not any(task.completed for task in fitness.tasks)


def test_user_main_path_defaults_to_resilience():
    assert user_main_path({"mainPath": "focus"}) == "focus"
    assert user_main_path({"mainPath": "unknown"}) == "resilience"
    assert user_main_path({}) == "resilience"


# ============================================================================
# Staleness Tests
# ============================================================================

def test_staleness(service, active_snapshot, new_user_snapshot):
    assert service.is_stale(active_snapshot, ContentKind.TASKS) is False
    assert service.is_stale(new_user_snapshot, ContentKind.TASKS) is True
    assert service.is_stale(None, ContentKind.FITNESS) is True
    assert service.needs_refresh(active_snapshot) is False
    assert service.needs_refresh(new_user_snapshot) is True
    assert service.needs_refresh(None) is False


def test_hydration_staleness(service, active_snapshot):
    assert service.hydration_is_stale(active_snapshot) is False

    active_snapshot["hydration"] = {"level": 5, "lastLogDate": YESTERDAY}
    assert service.hydration_is_stale(active_snapshot) is True
    assert service.needs_refresh(active_snapshot) is True


# ============================================================================
# Daily Content Tests
# ============================================================================

@pytest.mark.asyncio
async def test_ensure_daily_content_uses_generated_tasks(store, generation_client, clock, new_user_snapshot):
    generation_client.generate_model = AsyncMock(return_value=generated_daily_content())
    service = DailyContentService(store, generation_client, clock=clock)
    await store.set("u1", new_user_snapshot)

    result = await service.ensure_daily_content("u1", new_user_snapshot)

    content = (await store.get("u1"))["dailyContent"]
    assert result.success
    assert result.notices == []
    assert content["date"] == TODAY
    assert [task["text"] for task in content["tasks"]][0] == "Name one thing you handled well."
    assert content["tasks"][1]["isJournaling"] is True
    assert content["bigQuest"] == {"path": "resilience", "text": "Take a mindful ten-minute walk."}
    assert content["allSmallTasksCompleted"] is False
    assert service.content_state("u1", ContentKind.TASKS) == ContentState.FRESH


@pytest.mark.asyncio
async def test_ensure_daily_content_falls_back(service, store, new_user_snapshot):
    await store.set("u1", new_user_snapshot)

    result = await service.ensure_daily_content("u1", new_user_snapshot)

    content = (await store.get("u1"))["dailyContent"]
    assert result.success
    assert result.notices[0].kind == NoticeKind.INFO
    assert result.notices[0].message == TASKS_FALLBACK_NOTICE
    assert content["bigQuest"]["text"] == FALLBACK_BIG_QUEST_TEXT
    assert sum(1 for task in content["tasks"] if task["isJournaling"]) == 1


@pytest.mark.asyncio
async def test_endpoint_server_error_falls_back(store, clock, rng, new_user_snapshot):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(500, json={"error": "Internal server error"})

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = GenerationClient("http://proxy.test/api/generateContent", http_client=http_client)
    service = DailyContentService(store, client, clock=clock, rng=rng)
    await store.set("u1", new_user_snapshot)

    result = await service.ensure_daily_content("u1", new_user_snapshot)
    await http_client.aclose()

    content = (await store.get("u1"))["dailyContent"]
    assert len(requests) == 1
    assert result.success
    assert result.notices[0].message == TASKS_FALLBACK_NOTICE
    assert content["date"] == TODAY
    assert len(content["tasks"]) == 3
    assert sum(1 for task in content["tasks"] if task["isJournaling"]) == 1


@pytest.mark.asyncio
async def test_invalid_generated_shape_falls_back(store, generation_client, clock, new_user_snapshot):
    generation_client.generate_model = AsyncMock(
        side_effect=InvalidGenerationResponseError(message="two journaling tasks")
    )
    service = DailyContentService(store, generation_client, clock=clock)
    await store.set("u1", new_user_snapshot)

    result = await service.ensure_daily_content("u1", new_user_snapshot)

    assert result.has_notice(NoticeKind.INFO)
    assert (await store.get("u1"))["dailyContent"]["date"] == TODAY


@pytest.mark.asyncio
async def test_fresh_content_is_not_regenerated(service, store, active_snapshot):
    await store.set("u1", active_snapshot)

    result = await service.ensure_daily_content("u1", active_snapshot)

    assert result.updates == {}
    assert store.write_count == 1
    service.generation_client.generate_model.assert_not_called()
    assert service.content_state("u1", ContentKind.TASKS) == ContentState.FRESH


@pytest.mark.asyncio
async def test_yesterdays_content_is_replaced(service, store, active_snapshot):
    active_snapshot["dailyContent"] = make_daily_content(date=YESTERDAY, completed=(True, True, True), all_done=True)
    await store.set("u1", active_snapshot)

    await service.ensure_daily_content("u1", active_snapshot)

    content = (await store.get("u1"))["dailyContent"]
    assert content["date"] == TODAY
    assert content["allSmallTasksCompleted"] is False
    assert not any(task["completed"] for task in content["tasks"])


@pytest.mark.asyncio
async def test_generation_in_flight_is_not_duplicated(service, new_user_snapshot):
    service._states[("u1", ContentKind.TASKS)] = ContentState.GENERATING

    result = await service.ensure_daily_content("u1", new_user_snapshot)

    assert result.updates == {}
    service.generation_client.generate_model.assert_not_called()


@pytest.mark.asyncio
async def test_save_failure_returns_to_stale(service, store, new_user_snapshot):
    store.set = AsyncMock(side_effect=WriteError(message="disk full"))

    result = await service.ensure_daily_content("u1", new_user_snapshot)

    assert result.success is False
    assert result.has_notice(NoticeKind.ERROR)
    assert service.content_state("u1", ContentKind.TASKS) == ContentState.STALE


# ============================================================================
# Daily Fitness Tests
# ============================================================================

@pytest.mark.asyncio
async def test_ensure_daily_fitness_sorts_generated_tasks(store, generation_client, clock, new_user_snapshot):
    generation_client.generate_model = AsyncMock(return_value=generated_fitness_plan())
    service = DailyContentService(store, generation_client, clock=clock)
    await store.set("u1", new_user_snapshot)

    await service.ensure_daily_fitness("u1", new_user_snapshot)

    fitness = (await store.get("u1"))["dailyFitness"]
    assert fitness["date"] == TODAY
    assert [task["level"] for task in fitness["tasks"]] == [1, 2, 3, 4, 5]
    assert fitness["tasks"][0]["text"] == "Move 1"


@pytest.mark.asyncio
async def test_ensure_daily_fitness_falls_back(service, store, new_user_snapshot):
    await store.set("u1", new_user_snapshot)

    result = await service.ensure_daily_fitness("u1", new_user_snapshot)

    assert result.notices[0].message == FITNESS_FALLBACK_NOTICE
    assert len((await store.get("u1"))["dailyFitness"]["tasks"]) == 5


@pytest.mark.asyncio
async def test_fitness_refresh_keeps_other_fields(service, store, active_snapshot):
    active_snapshot["dailyFitness"] = make_daily_fitness(date=YESTERDAY)
    await store.set("u1", active_snapshot)

    await service.ensure_daily_fitness("u1", active_snapshot)

    saved = await store.get("u1")
    assert saved["dailyContent"] == active_snapshot["dailyContent"]
    assert saved["displayName"] == "Ada"


# ============================================================================
# Hydration Reset Tests
# ============================================================================

@pytest.mark.asyncio
async def test_reset_hydration_on_new_day(service, store, active_snapshot):
    active_snapshot["hydration"] = {"level": 6, "lastLogDate": YESTERDAY}
    await store.set("u1", active_snapshot)

    result = await service.reset_hydration_if_stale("u1", active_snapshot)

    assert result.success
    assert (await store.get("u1"))["hydration"] == {"level": 0, "lastLogDate": TODAY}


@pytest.mark.asyncio
async def test_reset_hydration_same_day_is_noop(service, store, active_snapshot):
    active_snapshot["hydration"] = {"level": 6, "lastLogDate": TODAY}
    await store.set("u1", active_snapshot)

    await service.reset_hydration_if_stale("u1", active_snapshot)

    assert (await store.get("u1"))["hydration"]["level"] == 6
    assert store.write_count == 1
