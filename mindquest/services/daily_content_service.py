"""
DailyContentService - Daily Content Lifecycle

Keeps each user's daily task set, daily fitness set and hydration counter
current for today's date. Each content kind moves through
STALE -> GENERATING -> FRESH:
- STALE: the stored date is not today (or nothing is stored)
- GENERATING: a generation for today is in flight in this process
- FRESH: today's content has been written

Generation is attempted once per trigger. Any failure (transport, status,
missing text, bad JSON, wrong shape) falls back to the static pools.
"""

import logging
import random
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from mindquest.db.document_store import DocumentStore, Snapshot
from mindquest.exceptions import PersistenceError
from mindquest.gamification.content_pools import (
    FALLBACK_BIG_QUEST_TEXT,
    FALLBACK_TASKS_POOL,
    FITNESS_TASKS_POOL,
    JOURNALING_FALLBACK_CATEGORY,
    PoolTask,
)
from mindquest.generation.client import GenerationClient
from mindquest.generation.prompts import build_daily_tasks_prompt, build_fitness_prompt
from mindquest.models.generation import GeneratedDailyContent, GeneratedFitnessPlan
from mindquest.models.progress import (
    BigQuest,
    DailyContent,
    DailyFitness,
    DailyTask,
    FitnessTask,
    MainPath,
)
from mindquest.models.results import ActionResult, NoticeKind
from mindquest.resilience.fallback import FallbackStrategy, execute_with_fallbacks
from mindquest.services.base import GameService
from mindquest.utils.datetime_helpers import Clock, day_of, now_utc
from mindquest.utils.snapshot import generate_unique_id, safe_dict, safe_list

logger = logging.getLogger(__name__)

TASKS_FALLBACK_NOTICE = "The spirits are quiet... Here are some challenges."
FITNESS_FALLBACK_NOTICE = "Couldn't generate new exercises, using a classic routine!"


class ContentKind(str, Enum):
    TASKS = "dailyContent"
    FITNESS = "dailyFitness"


class ContentState(str, Enum):
    STALE = "stale"
    GENERATING = "generating"
    FRESH = "fresh"


def user_main_path(snapshot: Snapshot) -> str:
    """The user's path, falling back to resilience for malformed documents"""
    value = snapshot.get("mainPath")
    try:
        return MainPath(value).value
    except ValueError:
        logger.warning(f"Unknown mainPath {value!r}, using resilience")
        return MainPath.RESILIENCE.value


def build_fallback_tasks(rng: random.Random) -> List[Tuple[str, PoolTask]]:
    """
    Draw one task per category from the static pool

    Exactly one of the three drawn tasks is a journaling task: with none,
    the Resilience draw is swapped for the Resilience journaling entry; with
    several, every journaling draw after the first is redrawn from the
    non-journaling entries of its category.
    """
    draws = [(category, rng.choice(pool)) for category, pool in FALLBACK_TASKS_POOL.items()]

    if not any(task.is_journaling for _, task in draws):
        journaling_entry = next(
            task for task in FALLBACK_TASKS_POOL[JOURNALING_FALLBACK_CATEGORY] if task.is_journaling
        )
        draws = [
            (category, journaling_entry if category == JOURNALING_FALLBACK_CATEGORY else task)
            for category, task in draws
        ]
        return draws

    seen_journaling = False
    result = []
    for category, task in draws:
        if task.is_journaling:
            if seen_journaling:
                task = rng.choice([t for t in FALLBACK_TASKS_POOL[category] if not t.is_journaling])
            seen_journaling = True
        result.append((category, task))
    return result


def build_fallback_daily_content(main_path: str, today: date, rng: random.Random) -> DailyContent:
    tasks = [
        DailyTask(
            id=generate_unique_id(),
            category=category,
            text=task.text,
            is_journaling=task.is_journaling,
        )
        for category, task in build_fallback_tasks(rng)
    ]
    return DailyContent(
        date=today.isoformat(),
        tasks=tasks,
        big_quest=BigQuest(path=main_path, text=FALLBACK_BIG_QUEST_TEXT),
    )


def build_fallback_fitness(today: date, rng: random.Random) -> DailyFitness:
    """One random exercise per intensity level, gentlest first"""
    tasks = [
        FitnessTask(id=generate_unique_id(), text=rng.choice(pool), level=level)
        for level, pool in sorted(FITNESS_TASKS_POOL.items())
    ]
    return DailyFitness(date=today.isoformat(), tasks=tasks)


class DailyContentService(GameService):
    """
    Service for generating and refreshing daily content.

    Args:
        store: Document store
        generation_client: Client for the generation endpoint
        clock: Current-time source
        tz: App timezone
        rng: Random source for fallback draws
    """

    def __init__(
        self,
        store: DocumentStore,
        generation_client: GenerationClient,
        clock: Clock = now_utc,
        tz: Optional[ZoneInfo] = None,
        rng: Optional[random.Random] = None
    ):
        super().__init__(store, clock, tz)
        self.generation_client = generation_client
        self.rng = rng or random.Random()
        self._states: Dict[Tuple[str, ContentKind], ContentState] = {}
        logger.debug("DailyContentService initialized")

    # ----------------------------------------------------------------
    # State
    # ----------------------------------------------------------------

    def is_stale(self, snapshot: Optional[Snapshot], kind: ContentKind) -> bool:
        if not snapshot:
            return True
        content = safe_dict(snapshot.get(kind.value))
        return content.get("date") != self.today_key()

    def hydration_is_stale(self, snapshot: Optional[Snapshot]) -> bool:
        if not snapshot:
            return False
        hydration = safe_dict(snapshot.get("hydration"))
        return day_of(hydration.get("lastLogDate")) != self.today_key()

    def needs_refresh(self, snapshot: Optional[Snapshot]) -> bool:
        """True if anything in the snapshot belongs to a previous day"""
        if not snapshot:
            return False
        return (
            self.is_stale(snapshot, ContentKind.TASKS)
            or self.is_stale(snapshot, ContentKind.FITNESS)
            or self.hydration_is_stale(snapshot)
        )

    def content_state(self, user_id: str, kind: ContentKind) -> ContentState:
        return self._states.get((user_id, kind), ContentState.STALE)

    def _begin(self, user_id: str, kind: ContentKind, snapshot: Snapshot) -> bool:
        """Move to GENERATING; False if there is nothing to do"""
        if not self.is_stale(snapshot, kind):
            self._states[(user_id, kind)] = ContentState.FRESH
            return False
        if self.content_state(user_id, kind) == ContentState.GENERATING:
            logger.debug(f"{kind.value} generation already in flight for user {user_id}")
            return False
        self._states[(user_id, kind)] = ContentState.GENERATING
        return True

    # ----------------------------------------------------------------
    # Generation strategies
    # ----------------------------------------------------------------

    async def generate_daily_content(self, snapshot: Snapshot) -> DailyContent:
        """Ask the generation endpoint for today's three tasks and Big Quest"""
        main_path = user_main_path(snapshot)
        today = self.today()
        prompt = build_daily_tasks_prompt(
            main_path,
            safe_list(snapshot.get("completedTasksHistory")),
            today,
        )
        generated = await self.generation_client.generate_model(prompt, GeneratedDailyContent)

        if generated.big_quest.path.lower() != main_path:
            logger.debug(f"Generated Big Quest path {generated.big_quest.path!r} replaced with {main_path}")

        return DailyContent(
            date=today.isoformat(),
            tasks=[
                DailyTask(
                    id=generate_unique_id(),
                    category=task.category,
                    text=task.task,
                    is_journaling=task.is_journaling,
                )
                for task in generated.daily_tasks
            ],
            big_quest=BigQuest(path=main_path, text=generated.big_quest.task),
        )

    def fallback_daily_content(self, snapshot: Snapshot) -> DailyContent:
        return build_fallback_daily_content(user_main_path(snapshot), self.today(), self.rng)

    async def generate_daily_fitness(self, snapshot: Snapshot) -> DailyFitness:
        generated = await self.generation_client.generate_model(build_fitness_prompt(), GeneratedFitnessPlan)
        tasks = [
            FitnessTask(id=generate_unique_id(), text=task.task, level=task.level)
            for task in sorted(generated.fitness_tasks, key=lambda t: t.level)
        ]
        return DailyFitness(date=self.today_key(), tasks=tasks)

    def fallback_daily_fitness(self, snapshot: Snapshot) -> DailyFitness:
        return build_fallback_fitness(self.today(), self.rng)

    # ----------------------------------------------------------------
    # Lifecycle operations
    # ----------------------------------------------------------------

    async def _refresh(
        self,
        user_id: str,
        snapshot: Snapshot,
        kind: ContentKind,
        strategies: List[FallbackStrategy],
        fallback_notice: str
    ) -> ActionResult:
        result = ActionResult()
        if not self._begin(user_id, kind, snapshot):
            return result

        saved = False
        try:
            outcome = await execute_with_fallbacks(strategies, snapshot)
            if outcome.used_fallback:
                result.notify(NoticeKind.INFO, fallback_notice)

            content = {kind.value: outcome.value.to_document()}
            await self.store.set(user_id, content, merge=True)
            saved = True
        except PersistenceError as e:
            logger.error(f"Saving {kind.value} failed for user {user_id}: {e}")
            return result.fail("Could not save your progress. Please try again.")
        finally:
            self._states[(user_id, kind)] = ContentState.FRESH if saved else ContentState.STALE

        result.updates.update(content)
        logger.info(f"{kind.value} refreshed for user {user_id} via {outcome.strategy}")
        return result

    async def ensure_daily_content(self, user_id: str, snapshot: Snapshot) -> ActionResult:
        """Generate and store today's tasks and Big Quest unless already current"""
        strategies = [
            FallbackStrategy("generation", self.generate_daily_content, priority=1),
            FallbackStrategy("static_pool", self.fallback_daily_content, priority=2),
        ]
        return await self._refresh(user_id, snapshot, ContentKind.TASKS, strategies, TASKS_FALLBACK_NOTICE)

    async def ensure_daily_fitness(self, user_id: str, snapshot: Snapshot) -> ActionResult:
        """Generate and store today's five fitness tasks unless already current"""
        strategies = [
            FallbackStrategy("generation", self.generate_daily_fitness, priority=1),
            FallbackStrategy("static_pool", self.fallback_daily_fitness, priority=2),
        ]
        return await self._refresh(user_id, snapshot, ContentKind.FITNESS, strategies, FITNESS_FALLBACK_NOTICE)

    async def reset_hydration_if_stale(self, user_id: str, snapshot: Snapshot) -> ActionResult:
        """Start a new hydration day at 0/8"""
        result = ActionResult()
        if not self.hydration_is_stale(snapshot):
            return result

        updates = {"hydration.level": 0, "hydration.lastLogDate": self.today_key()}
        await self._persist(
            user_id, updates, result,
            failure_message="Could not save hydration progress.",
            operation="reset_hydration"
        )
        return result
