"""Unit tests for JournalService"""
from unittest.mock import AsyncMock

import pytest

from mindquest.exceptions import DocumentNotFoundError, ValidationError
from mindquest.models.progress import JournalSource
from mindquest.models.results import NoticeKind
from mindquest.services.journal_service import JournalService, sorted_journal
from tests.helpers import TODAY

USER = "user-123"


def journal_entry(entry_id, date, text="An older thought", **extra):
    return {"id": entry_id, "date": date, "entry": text, "source": "journal", **extra}


@pytest.fixture
def service(store, generation_client, clock):
    return JournalService(store, generation_client, clock=clock)


@pytest.fixture
def journal_snapshot(active_snapshot):
    active_snapshot.update({
        "journal": [
            journal_entry("j2", "2024-05-10T18:00:00+00:00", text="Second", insights="Keep going."),
            journal_entry("j1", "2024-05-01T18:00:00+00:00", text="First"),
        ],
        "badges": ["scribe"],
    })
    return active_snapshot


# ============================================================================
# Save Tests
# ============================================================================

@pytest.mark.asyncio
async def test_first_entry_earns_scribe(service, store, active_snapshot):
    await store.set(USER, active_snapshot)

    result = await service.save_journal_entry(USER, active_snapshot, "  Today I noticed the light.  ")

    document = await store.get(USER)
    entry = document["journal"][0]
    assert result.success
    assert entry["entry"] == "Today I noticed the light."
    assert entry["source"] == "journal"
    assert "mood" not in entry
    assert entry["date"].startswith(TODAY)
    assert result.new_badges == ["scribe"]
    assert result.xp_gained == 25
    assert document["badges"] == ["scribe"]
    assert document["xp"] == 25
    assert result.notices[-1].message == "Your thoughts have been saved."
    assert result.notices[-1].data == {"entry_id": entry["id"]}


@pytest.mark.asyncio
async def test_mood_entry_keeps_mood(service, store, journal_snapshot):
    await store.set(USER, journal_snapshot)

    result = await service.save_journal_entry(USER, journal_snapshot, "Feeling low today.", JournalSource.MOOD, 2)

    document = await store.get(USER)
    assert document["journal"][0]["mood"] == 2
    assert document["journal"][0]["source"] == "mood"
    assert len(document["journal"]) == 3
    assert result.xp_gained == 0
    assert "xp" not in result.updates


@pytest.mark.asyncio
async def test_mood_dropped_for_other_sources(service, store, journal_snapshot):
    await store.set(USER, journal_snapshot)

    await service.save_journal_entry(USER, journal_snapshot, "Quest reflections.", "quest", 4)

    entry = (await store.get(USER))["journal"][0]
    assert entry["source"] == "quest"
    assert "mood" not in entry


@pytest.mark.asyncio
async def test_blank_entry_rejected(service, store, active_snapshot):
    await store.set(USER, active_snapshot)

    with pytest.raises(ValidationError):
        await service.save_journal_entry(USER, active_snapshot, "   ")

    assert store.write_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("mood", [0, 9, True, "3"])
async def test_mood_entry_with_invalid_mood_rejected(service, store, active_snapshot, mood):
    await store.set(USER, active_snapshot)

    with pytest.raises(ValidationError) as exc_info:
        await service.save_journal_entry(USER, active_snapshot, "I feel okay", JournalSource.MOOD, mood)

    assert exc_info.value.field == "mood"
    assert store.write_count == 1


@pytest.mark.asyncio
async def test_unknown_source_rejected(service, store, active_snapshot):
    await store.set(USER, active_snapshot)

    with pytest.raises(ValidationError) as exc_info:
        await service.save_journal_entry(USER, active_snapshot, "Some thoughts", "dream")

    assert exc_info.value.field == "source"
    assert store.write_count == 1


# ============================================================================
# Edit and Delete Tests
# ============================================================================

@pytest.mark.asyncio
async def test_update_entry_refreshes_date_and_drops_insights(service, store, journal_snapshot):
    await store.set(USER, journal_snapshot)

    result = await service.update_journal_entry(USER, journal_snapshot, "j2", "Second, revised")

    entry = (await store.get(USER))["journal"][0]
    assert result.notices[0].message == "Journal entry updated!"
    assert entry["id"] == "j2"
    assert entry["entry"] == "Second, revised"
    assert entry["date"].startswith(TODAY)
    assert "insights" not in entry


@pytest.mark.asyncio
async def test_update_unknown_entry(service, store, journal_snapshot):
    await store.set(USER, journal_snapshot)

    with pytest.raises(DocumentNotFoundError):
        await service.update_journal_entry(USER, journal_snapshot, "missing", "Text")


@pytest.mark.asyncio
async def test_delete_entry(service, store, journal_snapshot):
    await store.set(USER, journal_snapshot)

    result = await service.delete_journal_entry(USER, journal_snapshot, "j1")

    document = await store.get(USER)
    assert [entry["id"] for entry in document["journal"]] == ["j2"]
    assert result.notices[0].kind == NoticeKind.INFO
    assert document["badges"] == ["scribe"]


@pytest.mark.asyncio
async def test_delete_unknown_entry(service, store, journal_snapshot):
    await store.set(USER, journal_snapshot)

    with pytest.raises(DocumentNotFoundError):
        await service.delete_journal_entry(USER, journal_snapshot, "missing")


# ============================================================================
# Insight Tests
# ============================================================================

@pytest.mark.asyncio
async def test_generate_insights(service, store, journal_snapshot):
    await store.set(USER, journal_snapshot)
    service.generation_client.generate_text = AsyncMock(return_value="  Be gentle with yourself.  ")

    result = await service.generate_journal_insights(USER, journal_snapshot, "j1")

    entry = (await store.get(USER))["journal"][1]
    assert entry["insights"] == "Be gentle with yourself."
    assert result.notices[0].data == {"entry_id": "j1", "insights": "Be gentle with yourself."}
    prompt = service.generation_client.generate_text.call_args[0][0]
    assert prompt.endswith("First\n---")


@pytest.mark.asyncio
async def test_insight_failure_leaves_entry(store, failing_generation_client, clock, journal_snapshot):
    service = JournalService(store, failing_generation_client, clock=clock)
    await store.set(USER, journal_snapshot)

    result = await service.generate_journal_insights(USER, journal_snapshot, "j1")

    assert result.success is False
    assert "spirits of insight" in result.notices[0].message
    assert "insights" not in (await store.get(USER))["journal"][1]
    assert store.write_count == 1


def test_sorted_journal_newest_first():
    snapshot = {
        "journal": [
            journal_entry("a", "2024-05-01T08:00:00+00:00"),
            journal_entry("b", "2024-05-12T08:00:00+00:00"),
            "not an entry",
            journal_entry("c", "2024-05-03T08:00:00+00:00"),
        ]
    }

    assert [entry["id"] for entry in sorted_journal(snapshot)] == ["b", "c", "a"]
    assert sorted_journal(None) == []


@pytest.mark.asyncio
async def test_insights_can_be_requested_again_after_edit(service, store, journal_snapshot):
    await store.set(USER, journal_snapshot)
    await service.update_journal_entry(USER, journal_snapshot, "j2", "Second, with more detail")
    edited = await store.get(USER)
    assert "insights" not in edited["journal"][0]

    service.generation_client.generate_text = AsyncMock(return_value="You are growing.")
    result = await service.generate_journal_insights(USER, edited, "j2")

    entry = (await store.get(USER))["journal"][0]
    assert result.success
    assert entry["insights"] == "You are growing."
    prompt = service.generation_client.generate_text.call_args[0][0]
    assert "Second, with more detail" in prompt
