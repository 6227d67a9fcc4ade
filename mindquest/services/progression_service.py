"""
ProgressionService - Progression Controller

Applies the reward rules to user actions: mood check-ins, daily small tasks,
the Big Quest, hydration and the fitness challenge.

Each operation takes the user id and the latest snapshot, computes the field
updates with the pure gamification helpers, writes them in one store update
and returns an ActionResult. Input and state problems raise before anything
is written; store failures come back as a failed result.
"""

import copy
import logging
from datetime import timedelta
from typing import Any, Dict, List

from mindquest.db.document_store import Snapshot
from mindquest.exceptions import ActionNotAllowedError, ValidationError
from mindquest.gamification.content_pools import (
    LOW_MOOD_THRESHOLD,
    SUPPORT_RESOURCE_URL,
    get_mood,
)
from mindquest.gamification.streak_system import describe_streak, next_streak, quest_completed_today
from mindquest.gamification.world_map import get_node, is_fitness_hub_unlocked, next_node_to_unlock
from mindquest.gamification.xp_system import XP_REWARDS, apply_xp
from mindquest.models.progress import JournalEntry, JournalSource, MoodEntry
from mindquest.models.results import ActionResult, NoticeKind
from mindquest.services.base import GameService, preview, with_badges
from mindquest.utils.datetime_helpers import day_of, local_now, parse_timestamp
from mindquest.utils.snapshot import generate_unique_id, safe_dict, safe_int, safe_list

logger = logging.getLogger(__name__)

HYDRATION_GOAL = 8
MOOD_HISTORY_LIMIT = 30
TASK_HISTORY_LIMIT = 50
LOW_MOOD_WINDOW = 3
SUPPORT_COOLDOWN = timedelta(days=7)
MIN_TASK_JOURNAL_LENGTH = 10


def task_text(task: Dict[str, Any]) -> str:
    """Text of a stored task; older documents store it under 'task'"""
    return task.get("text") or task.get("task") or ""


def is_low_mood_pattern(mood_history: List[Dict[str, Any]]) -> bool:
    """
    True when the most recent check-ins are all low on distinct days

    Args:
        mood_history: Entries sorted newest first
    """
    recent = mood_history[:LOW_MOOD_WINDOW]
    if len(recent) < LOW_MOOD_WINDOW:
        return False
    days = {day_of(entry.get("date")) for entry in recent}
    all_low = all(safe_int(entry.get("mood"), default=LOW_MOOD_THRESHOLD + 1) <= LOW_MOOD_THRESHOLD
                  for entry in recent)
    return all_low and len(days) >= LOW_MOOD_WINDOW


class ProgressionService(GameService):
    """Service for task, quest, mood, hydration and fitness progression."""

    # ----------------------------------------------------------------
    # Helpers
    # ----------------------------------------------------------------

    def _todays(self, snapshot: Snapshot, key: str, what: str) -> Dict[str, Any]:
        content = safe_dict(snapshot.get(key))
        if not content or content.get("date") != self.today_key():
            raise ActionNotAllowedError(f"Today's {what} are not ready yet.")
        return content

    @staticmethod
    def _find_task(tasks: List[Any], task_id: str) -> Dict[str, Any]:
        for task in tasks:
            if isinstance(task, dict) and task.get("id") == task_id:
                if task.get("completed"):
                    raise ActionNotAllowedError("That task is already complete.")
                return task
        raise ValidationError(message="Unknown task.", field="task_id", value=task_id)

    @staticmethod
    def _mark_completed(tasks: List[Any], task_id: str) -> List[Dict[str, Any]]:
        return [
            {**task, "completed": True} if task.get("id") == task_id else copy.deepcopy(task)
            for task in tasks
            if isinstance(task, dict)
        ]

    # ----------------------------------------------------------------
    # Mood
    # ----------------------------------------------------------------

    async def record_mood(self, user_id: str, snapshot: Snapshot, mood_value: int) -> ActionResult:
        """
        Record today's mood check-in

        The first check-in of the day pays XP; later ones only replace
        today's value. Returns the mood's journaling prompt as a notice.
        """
        valid = isinstance(mood_value, int) and not isinstance(mood_value, bool)
        mood = get_mood(mood_value) if valid else None
        if mood is None:
            raise ValidationError(message="Mood must be between 1 and 5.", field="mood", value=mood_value)

        today = self.today_key()
        result = ActionResult()
        updates: Dict[str, Any] = {}
        xp_gained = 0

        if day_of(snapshot.get("lastMoodDate")) != today:
            xp_gained = XP_REWARDS["mood"]
            updates["lastMoodDate"] = today
            result.notify(NoticeKind.SUCCESS, f"+{xp_gained} XP for your check-in!")

        mood_history = [copy.deepcopy(e) for e in safe_list(snapshot.get("moodHistory")) if isinstance(e, dict)]
        todays_entry = next((e for e in mood_history if day_of(e.get("date")) == today), None)
        if todays_entry is not None:
            todays_entry["mood"] = mood_value
        else:
            mood_history.insert(0, MoodEntry(date=self.timestamp(), mood=mood_value).to_document())
        mood_history.sort(key=lambda e: parse_timestamp(e.get("date")), reverse=True)
        updates["moodHistory"] = mood_history[:MOOD_HISTORY_LIMIT]

        result.notify(
            NoticeKind.JOURNAL_PROMPT,
            mood.prompt,
            source=JournalSource.MOOD.value,
            mood=mood_value
        )

        new_badges = self._grant_badges(preview(snapshot, updates), result)
        if new_badges:
            updates["badges"] = with_badges(snapshot, new_badges)

        xp_gained += result.xp_gained
        if xp_gained:
            updates["level"], updates["xp"] = apply_xp(xp_gained, snapshot.get("level"), snapshot.get("xp"))
        result.xp_gained = xp_gained

        if not await self._persist(user_id, updates, result, "Could not save your mood.", "record_mood"):
            return result

        await self._check_low_mood(user_id, snapshot, updates["moodHistory"], result)
        return result

    async def _check_low_mood(
        self,
        user_id: str,
        snapshot: Snapshot,
        mood_history: List[Dict[str, Any]],
        result: ActionResult
    ) -> None:
        """Offer support resources after a run of low moods, at most weekly"""
        last_support = snapshot.get("lastSupportMessageDate")
        if last_support:
            since = local_now(self.clock, self.tz) - parse_timestamp(last_support)
            if since < SUPPORT_COOLDOWN:
                return

        if not is_low_mood_pattern(mood_history):
            return

        logger.info(f"Low mood pattern detected for user {user_id}")
        result.notify(
            NoticeKind.SUPPORT,
            "It looks like things have been tough lately. "
            "If talking to someone could help, here are some resources.",
            title="You're Not Alone",
            url=SUPPORT_RESOURCE_URL
        )
        await self._persist(
            user_id,
            {"lastSupportMessageDate": self.timestamp()},
            result,
            "Could not save your progress. Please try again.",
            "record_support_message"
        )

    # ----------------------------------------------------------------
    # Daily small tasks
    # ----------------------------------------------------------------

    async def complete_simple_task(self, user_id: str, snapshot: Snapshot, task_id: str) -> ActionResult:
        daily_content = self._todays(snapshot, "dailyContent", "tasks")
        task = self._find_task(safe_list(daily_content.get("tasks")), task_id)
        if task.get("isJournaling"):
            raise ValidationError(message="This task needs a journal entry.", field="task_id", value=task_id)

        result = ActionResult(xp_gained=XP_REWARDS["task"])
        updated_tasks = self._mark_completed(daily_content["tasks"], task_id)
        updates = {"dailyContent": {**copy.deepcopy(daily_content), "tasks": updated_tasks}}
        updates["level"], updates["xp"] = apply_xp(result.xp_gained, snapshot.get("level"), snapshot.get("xp"))

        if not await self._persist(user_id, updates, result, "Failed to save task completion.",
                                   "complete_simple_task"):
            return result

        result.notify(NoticeKind.SUCCESS, f"Task Complete! +{XP_REWARDS['task']} XP")
        await self._evaluate_all_tasks_completed(user_id, preview(snapshot, updates), result)
        return result

    async def complete_journaling_task(
        self,
        user_id: str,
        snapshot: Snapshot,
        task_id: str,
        text: str
    ) -> ActionResult:
        """Complete the journaling task by saving its journal entry"""
        entry_text = (text or "").strip()
        if len(entry_text) < MIN_TASK_JOURNAL_LENGTH:
            raise ValidationError(
                message=f"Journal entry must be at least {MIN_TASK_JOURNAL_LENGTH} characters long.",
                field="text",
                value=text
            )

        daily_content = self._todays(snapshot, "dailyContent", "tasks")
        task = self._find_task(safe_list(daily_content.get("tasks")), task_id)
        if not task.get("isJournaling"):
            raise ValidationError(message="This task is not a journaling task.", field="task_id", value=task_id)

        entry = JournalEntry(
            id=generate_unique_id(),
            date=self.timestamp(),
            entry=entry_text,
            source=JournalSource.TASK,
            task_text=task_text(task),
            path=str(task.get("category", "")).lower() or None,
        )

        result = ActionResult(xp_gained=XP_REWARDS["task"])
        updates = {
            "journal": [entry.to_document()] + copy.deepcopy(safe_list(snapshot.get("journal"))),
            "dailyContent": {
                **copy.deepcopy(daily_content),
                "tasks": self._mark_completed(daily_content["tasks"], task_id),
            },
        }
        updates["level"], updates["xp"] = apply_xp(result.xp_gained, snapshot.get("level"), snapshot.get("xp"))

        if not await self._persist(user_id, updates, result, "Failed to save journal and task.",
                                   "complete_journaling_task"):
            return result

        result.notify(NoticeKind.SUCCESS, f"Journal saved & task complete! +{XP_REWARDS['task']} XP")
        await self._evaluate_all_tasks_completed(user_id, preview(snapshot, updates), result)
        return result

    async def _evaluate_all_tasks_completed(self, user_id: str, snapshot: Snapshot, result: ActionResult) -> None:
        """
        Once all three tasks are done: open the Big Quest, remember the
        task texts, unlock the next map node and top up hydration
        """
        daily_content = safe_dict(snapshot.get("dailyContent"))
        tasks = [t for t in safe_list(daily_content.get("tasks")) if isinstance(t, dict)]
        if not tasks or not all(t.get("completed") for t in tasks):
            return
        if daily_content.get("allSmallTasksCompleted"):
            return

        history = safe_list(snapshot.get("completedTasksHistory")) + [task_text(t) for t in tasks]
        unlocked = list(safe_list(snapshot.get("unlockedNodes")))
        updates: Dict[str, Any] = {
            "dailyContent.allSmallTasksCompleted": True,
            "completedTasksHistory": history[-TASK_HISTORY_LIMIT:],
        }

        node = next_node_to_unlock(snapshot.get("mainPath"), unlocked)
        if node is not None:
            unlocked.append(node.id)
        updates["unlockedNodes"] = unlocked

        if not await self._persist(user_id, updates, result, "Could not save your progress. Please try again.",
                                   "complete_daily_tasks"):
            return

        if node is not None:
            logger.info(f"Node {node.id} unlocked for user {user_id}")
            result.notify(
                NoticeKind.NODE_UNLOCKED,
                f"New area unlocked: {node.name}!",
                node_id=node.id,
                path=node.path
            )

        snapshot = preview(snapshot, updates)
        if self._hydration_level(snapshot) < HYDRATION_GOAL:
            await self._log_water(user_id, snapshot, result, silent=True)

    # ----------------------------------------------------------------
    # Big Quest
    # ----------------------------------------------------------------

    async def complete_node_task(self, user_id: str, snapshot: Snapshot, node_id: str) -> ActionResult:
        """
        Complete today's Big Quest at a map node

        Allowed once per day, after all small tasks are done, on an unlocked
        node of the user's path that has not been completed before.
        """
        today = self.today()
        daily_content = self._todays(snapshot, "dailyContent", "tasks")
        big_quest = safe_dict(daily_content.get("bigQuest"))
        if not big_quest:
            raise ActionNotAllowedError("There is no Big Quest today.")
        if not daily_content.get("allSmallTasksCompleted"):
            raise ActionNotAllowedError("Complete today's tasks to unlock the Big Quest.")
        if quest_completed_today(snapshot, today):
            raise ActionNotAllowedError("You've already completed today's Big Quest. Come back tomorrow!")

        node = get_node(node_id)
        if node is None or node.path != snapshot.get("mainPath"):
            raise ValidationError(message="Unknown map node.", field="node_id", value=node_id)
        completed_nodes = list(safe_list(snapshot.get("completedNodes")))
        if node_id not in safe_list(snapshot.get("unlockedNodes")):
            raise ActionNotAllowedError(f"{node.name} is still locked.")
        if node_id in completed_nodes:
            raise ActionNotAllowedError(f"{node.name} has already been explored.")

        previous_streak = snapshot.get("streak")
        streak = next_streak(previous_streak, snapshot.get("lastQuestDate"), today)
        completed_node_tasks = copy.deepcopy(safe_dict(snapshot.get("completedNodeTasks")))
        completed_node_tasks[f"{node_id}-{today.isoformat()}"] = big_quest.get("text") or big_quest.get("task", "")

        result = ActionResult(xp_gained=XP_REWARDS["quest"])
        result.notify(NoticeKind.SUCCESS, f"Big Quest Complete! +{XP_REWARDS['quest']}XP!")
        if not is_fitness_hub_unlocked(completed_nodes):
            result.notify(NoticeKind.FITNESS_HUB_UNLOCKED, "The Fitness Hub is now open!")
        result.notify(NoticeKind.INFO, describe_streak(previous_streak, streak), streak=streak)

        completed_nodes.append(node_id)
        updates: Dict[str, Any] = {
            "completedNodes": completed_nodes,
            "completedNodeTasks": completed_node_tasks,
            "streak": streak,
            "lastQuestDate": today.isoformat(),
        }
        new_badges = self._grant_badges(preview(snapshot, updates), result)
        updates["badges"] = with_badges(snapshot, new_badges)
        updates["level"], updates["xp"] = apply_xp(result.xp_gained, snapshot.get("level"), snapshot.get("xp"))

        await self._persist(user_id, updates, result, "Failed to save quest progress.", "complete_node_task")
        if result.success:
            logger.info(f"User {user_id} completed node {node_id}, streak {streak}")
        return result

    # ----------------------------------------------------------------
    # Hydration
    # ----------------------------------------------------------------

    async def log_water_intake(self, user_id: str, snapshot: Snapshot, silent: bool = False) -> ActionResult:
        result = ActionResult()
        await self._log_water(user_id, snapshot, result, silent)
        return result

    def _hydration_level(self, snapshot: Snapshot) -> int:
        """Today's glasses of water; a level logged on an earlier day counts as 0"""
        hydration = safe_dict(snapshot.get("hydration"))
        if day_of(hydration.get("lastLogDate")) != self.today_key():
            return 0
        return safe_int(hydration.get("level"))

    async def _log_water(self, user_id: str, snapshot: Snapshot, result: ActionResult, silent: bool) -> None:
        level = self._hydration_level(snapshot)
        if level >= HYDRATION_GOAL:
            if not silent:
                result.notify(NoticeKind.INFO, "You've already reached your goal for today!")
            return

        new_level = level + 1
        updates: Dict[str, Any] = {
            "hydration.level": new_level,
            "hydration.lastLogDate": self.today_key(),
        }
        xp_gained = 0
        if new_level == HYDRATION_GOAL:
            xp_gained = XP_REWARDS["hydration"]
            updates["level"], updates["xp"] = apply_xp(xp_gained, snapshot.get("level"), snapshot.get("xp"))

        if not await self._persist(user_id, updates, result, "Could not save hydration progress.",
                                   "log_water_intake"):
            return

        result.xp_gained += xp_gained
        if xp_gained and not silent:
            result.notify(NoticeKind.SUCCESS, f"Hydration goal complete! +{xp_gained} XP")

    # ----------------------------------------------------------------
    # Fitness
    # ----------------------------------------------------------------

    async def complete_fitness_task(self, user_id: str, snapshot: Snapshot, task_id: str) -> ActionResult:
        """
        Mark one fitness exercise done; finishing all five pays the daily
        fitness reward in a second write
        """
        daily_fitness = self._todays(snapshot, "dailyFitness", "exercises")
        self._find_task(safe_list(daily_fitness.get("tasks")), task_id)

        result = ActionResult()
        updated_tasks = self._mark_completed(daily_fitness["tasks"], task_id)
        updated_fitness = {**copy.deepcopy(daily_fitness), "tasks": updated_tasks}
        if not await self._persist(user_id, {"dailyFitness": updated_fitness}, result,
                                   "Failed to save fitness progress.", "complete_fitness_task"):
            return result
        result.notify(NoticeKind.SUCCESS, "Great work!")

        if not all(task.get("completed") for task in updated_tasks):
            return result

        fitness_completions = safe_int(snapshot.get("fitnessCompletions")) + 1
        reward = ActionResult(xp_gained=XP_REWARDS["fitness"])
        updates: Dict[str, Any] = {"fitnessCompletions": fitness_completions}
        new_badges = self._grant_badges(
            preview(snapshot, {**updates, "dailyFitness": updated_fitness}),
            reward
        )
        updates["badges"] = with_badges(snapshot, new_badges)
        updates["level"], updates["xp"] = apply_xp(reward.xp_gained, snapshot.get("level"), snapshot.get("xp"))

        if not await self._persist(user_id, updates, result, "Failed to save final fitness rewards.",
                                   "complete_fitness_day"):
            return result

        result.xp_gained += reward.xp_gained
        result.new_badges.extend(reward.new_badges)
        result.notices.extend(reward.notices)
        result.notify(
            NoticeKind.FITNESS_COMPLETE,
            f"Daily fitness challenge complete! +{reward.xp_gained} XP",
            xp=reward.xp_gained,
            fitness_completions=fitness_completions
        )
        logger.info(f"User {user_id} finished the fitness challenge ({fitness_completions} total)")
        return result

