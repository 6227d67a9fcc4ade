"""
GameSession - one user's live game session

Owns the store subscription and the latest snapshot, keeps daily content
current (on start and whenever a snapshot from a previous day arrives) and
exposes the player actions. Actions run against the latest snapshot; the
snapshot itself only changes when the store pushes a new one.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mindquest.db.document_store import DocumentStore, Snapshot, Unsubscribe
from mindquest.exceptions import MindQuestError
from mindquest.gamification.achievement_system import BADGES
from mindquest.gamification.content_pools import AVATARS, PATHS
from mindquest.gamification.world_map import MAP_NODES
from mindquest.gamification.xp_system import level_progress
from mindquest.models.progress import JournalSource
from mindquest.models.results import ActionResult, Notice
from mindquest.services.daily_content_service import DailyContentService
from mindquest.services.journal_service import JournalService, sorted_journal
from mindquest.services.onboarding_service import OnboardingService
from mindquest.services.progression_service import ProgressionService
from mindquest.utils.snapshot import safe_list

logger = logging.getLogger(__name__)

NoticeListener = Callable[[List[Notice]], None]


class GameSession:
    """
    Client-facing action surface for an authenticated user

    Args:
        user_id: Authenticated user id
        store: Document store
        daily_content: Daily content lifecycle service
        progression: Progression controller
        journal: Journal service
        onboarding: Onboarding service
        on_notices: Optional callback receiving notices produced by
            background refreshes
    """

    def __init__(
        self,
        user_id: str,
        store: DocumentStore,
        daily_content: DailyContentService,
        progression: ProgressionService,
        journal: JournalService,
        onboarding: OnboardingService,
        on_notices: Optional[NoticeListener] = None
    ):
        self.user_id = user_id
        self.store = store
        self.daily_content = daily_content
        self.progression = progression
        self.journal = journal
        self.onboarding = onboarding
        self.on_notices = on_notices

        self.snapshot: Optional[Snapshot] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._started = False
        self._refreshing = False
        self._refresh_task: Optional[asyncio.Task] = None

    # ----------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------

    async def start(self) -> List[Notice]:
        """Subscribe to the user's document and bring daily state up to date"""
        self._unsubscribe = await self.store.subscribe(self.user_id, self._on_snapshot)
        self._started = True
        logger.info(f"Session started for user {self.user_id}")
        if self.snapshot is None:
            return []
        return await self.ensure_daily_state()

    async def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
            try:
                await self._refresh_task
            except asyncio.CancelledError:
                pass
        self._started = False
        logger.info(f"Session closed for user {self.user_id}")

    @property
    def has_profile(self) -> bool:
        return self.snapshot is not None

    def _on_snapshot(self, snapshot: Optional[Snapshot]) -> None:
        self.snapshot = snapshot
        if not self._started or self._refreshing or snapshot is None:
            return
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        if self.daily_content.needs_refresh(snapshot):
            logger.info(f"Day rolled over for user {self.user_id}, refreshing daily content")
            self._refresh_task = asyncio.create_task(self._background_refresh())

    async def _background_refresh(self) -> None:
        notices = await self.ensure_daily_state()
        if notices and self.on_notices is not None:
            self.on_notices(notices)

    async def ensure_daily_state(self) -> List[Notice]:
        """
        Reset hydration and regenerate daily tasks and fitness if stale

        The steps write disjoint fields, so a step may run on a snapshot that
        does not yet echo the previous step's write.
        """
        if self._refreshing or self.snapshot is None:
            return []

        self._refreshing = True
        notices: List[Notice] = []
        try:
            steps = (
                self.daily_content.reset_hydration_if_stale,
                self.daily_content.ensure_daily_content,
                self.daily_content.ensure_daily_fitness,
            )
            for step in steps:
                if self.snapshot is None:
                    break
                result = await step(self.user_id, self.snapshot)
                notices.extend(result.notices)
        finally:
            self._refreshing = False
        return notices

    # ----------------------------------------------------------------
    # Actions
    # ----------------------------------------------------------------

    async def _run(self, action: Callable[..., Awaitable[ActionResult]], *args: Any) -> ActionResult:
        """
        Run an action against the latest snapshot; refusals become error notices

        A day that rolled over while the session sat idle is brought up to
        date first, and its notices lead the action's own.
        """
        if self.snapshot is None:
            return ActionResult().fail("Your journey hasn't started yet.")

        refresh_notices: List[Notice] = []
        if self._refresh_task is not None and not self._refresh_task.done():
            await self._refresh_task
        elif self.daily_content.needs_refresh(self.snapshot):
            logger.info(f"Day rolled over for idle user {self.user_id}, refreshing before action")
            refresh_notices = await self.ensure_daily_state()
        if self.snapshot is None:
            return ActionResult(notices=refresh_notices).fail("Your journey hasn't started yet.")

        try:
            result = await action(self.user_id, self.snapshot, *args)
        except MindQuestError as e:
            result = ActionResult().fail(e.user_message)
        result.notices[:0] = refresh_notices
        return result

    async def create_profile(self, display_name: str, avatar_id: int, main_path: str) -> ActionResult:
        # The first snapshot of a new profile is refreshed here, not in the background
        self._refreshing = True
        try:
            result = await self.onboarding.create_user_progress(self.user_id, display_name, avatar_id, main_path)
        except MindQuestError as e:
            return ActionResult().fail(e.user_message)
        finally:
            self._refreshing = False
        if result.success and self._started:
            result.notices.extend(await self.ensure_daily_state())
        return result

    async def record_mood(self, mood_value: int) -> ActionResult:
        return await self._run(self.progression.record_mood, mood_value)

    async def complete_simple_task(self, task_id: str) -> ActionResult:
        return await self._run(self.progression.complete_simple_task, task_id)

    async def complete_journaling_task(self, task_id: str, text: str) -> ActionResult:
        return await self._run(self.progression.complete_journaling_task, task_id, text)

    async def complete_node_task(self, node_id: str) -> ActionResult:
        return await self._run(self.progression.complete_node_task, node_id)

    async def log_water_intake(self, silent: bool = False) -> ActionResult:
        return await self._run(self.progression.log_water_intake, silent)

    async def complete_fitness_task(self, task_id: str) -> ActionResult:
        return await self._run(self.progression.complete_fitness_task, task_id)

    async def save_journal_entry(
        self,
        text: str,
        source: JournalSource = JournalSource.JOURNAL,
        mood: Optional[int] = None
    ) -> ActionResult:
        return await self._run(self.journal.save_journal_entry, text, source, mood)

    async def update_journal_entry(self, entry_id: str, text: str) -> ActionResult:
        return await self._run(self.journal.update_journal_entry, entry_id, text)

    async def delete_journal_entry(self, entry_id: str) -> ActionResult:
        return await self._run(self.journal.delete_journal_entry, entry_id)

    async def generate_journal_insights(self, entry_id: str) -> ActionResult:
        return await self._run(self.journal.generate_journal_insights, entry_id)

    # ----------------------------------------------------------------
    # Views
    # ----------------------------------------------------------------

    def level_progress(self) -> Dict[str, float]:
        snapshot = self.snapshot or {}
        return level_progress(snapshot.get("level"), snapshot.get("xp"))

    def journal_entries(self) -> List[Dict[str, Any]]:
        return sorted_journal(self.snapshot)

    def world_map(self) -> List[Dict[str, Any]]:
        """Map nodes with the user's unlock and completion state"""
        snapshot = self.snapshot or {}
        unlocked = set(safe_list(snapshot.get("unlockedNodes")))
        completed = set(safe_list(snapshot.get("completedNodes")))
        return [
            {
                "id": node.id,
                "name": node.name,
                "path": node.path,
                "position": {"top": node.top, "left": node.left},
                "unlocked": node.id in unlocked,
                "completed": node.id in completed,
            }
            for node in MAP_NODES
        ]

    @staticmethod
    def onboarding_options() -> Dict[str, List[Dict[str, Any]]]:
        """Paths and avatars offered when creating a profile"""
        return {
            "paths": [path._asdict() for path in PATHS],
            "avatars": [avatar._asdict() for avatar in AVATARS],
        }

    def badge_board(self) -> List[Dict[str, Any]]:
        """Every badge with whether the user holds it"""
        held = set(safe_list((self.snapshot or {}).get("badges")))
        return [
            {
                "id": badge.id,
                "name": badge.name,
                "description": badge.description,
                "category": badge.category,
                "earned": badge.id in held,
            }
            for badge in BADGES
        ]
