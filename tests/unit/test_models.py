"""Unit tests for document and result models"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from mindquest.models.progress import DailyContent, DailyFitness, JournalEntry, UserProgress
from mindquest.models.results import ActionResult, NoticeKind
from tests.helpers import make_daily_content, make_daily_fitness


def test_user_progress_document_shape():
    document = UserProgress(display_name="Ada", avatar_url="https://a/b.png", main_path="focus").to_document()

    assert document["displayName"] == "Ada"
    assert document["mainPath"] == "focus"
    assert document["level"] == 1
    assert document["xp"] == 0
    assert document["lastQuestDate"] is None
    assert document["hydration"] == {"level": 0, "lastLogDate": None}
    assert document["completedNodeTasks"] == {}
    assert "dailyContent" not in document
    assert "dailyFitness" not in document


def test_user_progress_rejects_unknown_path():
    with pytest.raises(PydanticValidationError):
        UserProgress(display_name="Ada", avatar_url="x", main_path="courage")


def test_daily_content_round_trips_document_keys():
    content = DailyContent.model_validate(make_daily_content())

    assert content.tasks[1].is_journaling is True
    assert content.to_document()["bigQuest"]["path"] == "resilience"
    assert content.to_document()["tasks"][0]["isJournaling"] is False


def test_daily_content_requires_one_journaling_task():
    data = make_daily_content()
    data["tasks"][0]["isJournaling"] = True

    with pytest.raises(PydanticValidationError):
        DailyContent.model_validate(data)


def test_daily_fitness_requires_five_tasks():
    data = make_daily_fitness()
    data["tasks"] = data["tasks"][:4]

    with pytest.raises(PydanticValidationError):
        DailyFitness.model_validate(data)


def test_journal_entry_omits_absent_fields():
    entry = JournalEntry(id="j1", date="2024-05-15T09:30:00+00:00", entry="Hello", source="journal")

    assert entry.to_document() == {
        "id": "j1",
        "date": "2024-05-15T09:30:00+00:00",
        "entry": "Hello",
        "source": "journal",
    }


def test_action_result_fail_and_notices():
    result = ActionResult().notify(NoticeKind.SUCCESS, "Saved", entry_id="j1")
    result.fail("Could not save")

    assert result.success is False
    assert result.has_notice(NoticeKind.ERROR)
    assert result.notices[0].data == {"entry_id": "j1"}
