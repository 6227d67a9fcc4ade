"""
JournalService - Journal Operations

Free journaling, edits, deletion and generated reflections ("insights").
Journal entries are stored newest first; readers should still sort by date
because edits refresh an entry's date without moving it.
"""

import copy
import logging
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from mindquest.db.document_store import DocumentStore, Snapshot
from mindquest.exceptions import DocumentNotFoundError, GenerationError, ValidationError
from mindquest.generation.client import GenerationClient
from mindquest.generation.prompts import build_insight_prompt
from mindquest.gamification.content_pools import get_mood
from mindquest.gamification.xp_system import apply_xp
from mindquest.models.progress import JournalEntry, JournalSource
from mindquest.models.results import ActionResult, NoticeKind
from mindquest.services.base import GameService, preview, with_badges
from mindquest.utils.datetime_helpers import Clock, now_utc, parse_timestamp
from mindquest.utils.snapshot import generate_unique_id, safe_list

logger = logging.getLogger(__name__)


def sorted_journal(snapshot: Optional[Snapshot]) -> List[Dict[str, Any]]:
    """Journal entries newest first by date"""
    entries = [e for e in safe_list((snapshot or {}).get("journal")) if isinstance(e, dict)]
    return sorted(entries, key=lambda e: parse_timestamp(e.get("date")), reverse=True)


def _require_text(text: Optional[str]) -> str:
    cleaned = text.strip() if isinstance(text, str) else ""
    if not cleaned:
        raise ValidationError(message="Journal entry cannot be empty.", field="entry", value=text)
    return cleaned


def _require_source(source: Any) -> JournalSource:
    try:
        return JournalSource(source)
    except ValueError:
        raise ValidationError(message="Unknown journal entry source.", field="source", value=source)


class JournalService(GameService):
    """
    Service for journal entries.

    Args:
        store: Document store
        generation_client: Client used for insights
        clock: Current-time source
        tz: App timezone
    """

    def __init__(
        self,
        store: DocumentStore,
        generation_client: GenerationClient,
        clock: Clock = now_utc,
        tz: Optional[ZoneInfo] = None
    ):
        super().__init__(store, clock, tz)
        self.generation_client = generation_client

    @staticmethod
    def _journal(snapshot: Snapshot) -> List[Dict[str, Any]]:
        return [copy.deepcopy(e) for e in safe_list(snapshot.get("journal")) if isinstance(e, dict)]

    @staticmethod
    def _find_entry(journal: List[Dict[str, Any]], entry_id: str) -> Dict[str, Any]:
        for entry in journal:
            if entry.get("id") == entry_id:
                return entry
        raise DocumentNotFoundError(
            message=f"Journal entry {entry_id} does not exist",
            record_type="Journal entry",
            record_id=entry_id,
            operation="find_journal_entry"
        )

    async def save_journal_entry(
        self,
        user_id: str,
        snapshot: Snapshot,
        text: str,
        source: JournalSource = JournalSource.JOURNAL,
        mood: Optional[int] = None
    ) -> ActionResult:
        """
        Add a journal entry

        Args:
            source: What prompted the entry (a mood check-in, a quest, ...)
            mood: Mood value, kept only for entries written after a check-in
        """
        entry_text = _require_text(text)
        source = _require_source(source)
        if source != JournalSource.MOOD:
            mood = None
        elif mood is not None:
            valid = isinstance(mood, int) and not isinstance(mood, bool)
            if not valid or get_mood(mood) is None:
                raise ValidationError(message="Mood must be between 1 and 5.", field="mood", value=mood)

        entry = JournalEntry(
            id=generate_unique_id(),
            date=self.timestamp(),
            entry=entry_text,
            source=source,
            mood=mood,
        )

        result = ActionResult()
        updates: Dict[str, Any] = {"journal": [entry.to_document()] + self._journal(snapshot)}

        new_badges = self._grant_badges(preview(snapshot, updates), result)
        if new_badges:
            updates["badges"] = with_badges(snapshot, new_badges)
            updates["level"], updates["xp"] = apply_xp(result.xp_gained, snapshot.get("level"), snapshot.get("xp"))

        if await self._persist(user_id, updates, result, "Failed to save your journal entry.",
                               "save_journal_entry"):
            result.notify(NoticeKind.SUCCESS, "Your thoughts have been saved.", entry_id=entry.id)
        return result

    async def update_journal_entry(self, user_id: str, snapshot: Snapshot, entry_id: str, text: str) -> ActionResult:
        """Replace an entry's text; its date is refreshed and old insights are dropped"""
        entry_text = _require_text(text)
        journal = self._journal(snapshot)
        entry = self._find_entry(journal, entry_id)
        entry["entry"] = entry_text
        entry["date"] = self.timestamp()
        entry.pop("insights", None)

        result = ActionResult()
        if await self._persist(user_id, {"journal": journal}, result, "Failed to update journal entry.",
                               "update_journal_entry"):
            result.notify(NoticeKind.SUCCESS, "Journal entry updated!")
        return result

    async def delete_journal_entry(self, user_id: str, snapshot: Snapshot, entry_id: str) -> ActionResult:
        journal = self._journal(snapshot)
        self._find_entry(journal, entry_id)
        remaining = [entry for entry in journal if entry.get("id") != entry_id]

        result = ActionResult()
        if await self._persist(user_id, {"journal": remaining}, result, "Failed to delete journal entry.",
                               "delete_journal_entry"):
            result.notify(NoticeKind.INFO, "Journal entry deleted.")
        return result

    async def generate_journal_insights(self, user_id: str, snapshot: Snapshot, entry_id: str) -> ActionResult:
        """
        Ask for a short supportive reflection on one entry and store it

        On generation failure the entry is left as it was.
        """
        journal = self._journal(snapshot)
        entry = self._find_entry(journal, entry_id)
        result = ActionResult()

        try:
            insights = await self.generation_client.generate_text(build_insight_prompt(entry.get("entry", "")))
        except GenerationError as e:
            logger.warning(f"Insight generation failed for entry {entry_id}: {e}")
            return result.fail("The spirits of insight are quiet right now. Please try again later.")

        entry["insights"] = insights.strip()
        if await self._persist(user_id, {"journal": journal}, result, "Failed to save your journal entry.",
                               "generate_journal_insights"):
            result.notify(NoticeKind.SUCCESS, "Insight revealed!", entry_id=entry_id, insights=entry["insights"])
        return result
