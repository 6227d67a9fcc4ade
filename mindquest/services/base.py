"""
Shared plumbing for game services

Every action service needs the same three things: today's date in the app
timezone, a write that turns store failures into a failed ActionResult, and
badge evaluation with the bonus XP that comes with it.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from mindquest.db.document_store import DocumentStore, Snapshot, apply_updates
from mindquest.exceptions import PersistenceError
from mindquest.gamification.achievement_system import (
    badge_bonus_xp,
    badge_names,
    find_new_badges,
    merge_badges,
)
from mindquest.models.results import ActionResult, NoticeKind
from mindquest.utils.datetime_helpers import Clock, local_today, now_utc, timestamp_now

logger = logging.getLogger(__name__)


class GameService:
    """
    Base class for services that read a snapshot and write field updates

    Args:
        store: Document store holding the user progress documents
        clock: Returns the current time (tests pin it)
        tz: Timezone deciding what "today" is (defaults to APP_TIMEZONE)
    """

    def __init__(self, store: DocumentStore, clock: Clock = now_utc, tz: Optional[ZoneInfo] = None):
        self.store = store
        self.clock = clock
        self.tz = tz

    def today(self) -> date:
        return local_today(self.clock, self.tz)

    def today_key(self) -> str:
        return self.today().isoformat()

    def timestamp(self) -> str:
        return timestamp_now(self.clock, self.tz)

    async def _persist(
        self,
        user_id: str,
        updates: Dict[str, Any],
        result: ActionResult,
        failure_message: str,
        operation: str
    ) -> bool:
        """
        Write field updates; on store failure mark the result failed

        Returns:
            True if the write succeeded
        """
        try:
            await self.store.update(user_id, updates)
        except PersistenceError as e:
            logger.error(f"{operation} failed for user {user_id}: {e}")
            result.fail(failure_message)
            return False

        result.updates.update(updates)
        return True

    def _grant_badges(self, snapshot_after: Snapshot, result: ActionResult) -> List[str]:
        """
        Find badges earned by the action and record them on the result

        Args:
            snapshot_after: Snapshot with the action's changes already applied

        Returns:
            Newly earned badge ids (bonus XP is added to result.xp_gained)
        """
        new_badges = find_new_badges(snapshot_after)
        if new_badges:
            bonus = badge_bonus_xp(new_badges)
            result.xp_gained += bonus
            result.new_badges.extend(new_badges)
            result.notify(
                NoticeKind.REWARD,
                f"Badge Unlocked! +{bonus} bonus XP!",
                badges=badge_names(new_badges)
            )
            logger.info(f"Badges earned: {', '.join(new_badges)}")
        return new_badges


def with_badges(snapshot: Snapshot, new_badges: List[str]) -> List[str]:
    """Badge list to write after an action"""
    return merge_badges(snapshot.get("badges"), new_badges)


def preview(snapshot: Snapshot, updates: Dict[str, Any]) -> Snapshot:
    """Snapshot as it will look once updates are written"""
    return apply_updates(snapshot, updates)
