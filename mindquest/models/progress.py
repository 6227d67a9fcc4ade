"""User progress document models

Attributes are snake_case; the persisted document uses the camelCase aliases.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class MainPath(str, Enum):
    """Thematic track chosen at onboarding"""
    RESILIENCE = "resilience"
    FOCUS = "focus"
    POSITIVITY = "positivity"


class TaskCategory(str, Enum):
    """Category of a daily small task"""
    RESILIENCE = "Resilience"
    FOCUS = "Focus"
    POSITIVITY = "Positivity"


class JournalSource(str, Enum):
    """What prompted a journal entry"""
    QUEST = "quest"
    JOURNAL = "journal"
    MOOD = "mood"
    TASK = "task"


class DocumentModel(BaseModel):
    """Base for models stored inside the user document"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )

    def to_document(self) -> dict:
        """Serialize with document (camelCase) keys, omitting absent optionals"""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class MoodEntry(DocumentModel):
    date: str  # ISO timestamp
    mood: int = Field(..., ge=1, le=5)


class JournalEntry(DocumentModel):
    """A journal entry; insights is absent until generated and cleared on edit"""
    id: str
    date: str  # ISO timestamp
    entry: str = Field(..., min_length=1)
    source: JournalSource
    mood: Optional[int] = Field(default=None, ge=1, le=5)
    task_text: Optional[str] = None
    path: Optional[str] = None
    insights: Optional[str] = None


class DailyTask(DocumentModel):
    id: str
    category: TaskCategory
    text: str
    is_journaling: bool = False
    completed: bool = False


class BigQuest(DocumentModel):
    path: MainPath
    text: str


class DailyContent(DocumentModel):
    """Today's three small tasks and the Big Quest they unlock"""
    date: str  # YYYY-MM-DD
    tasks: list[DailyTask]
    big_quest: BigQuest
    all_small_tasks_completed: bool = False

    @model_validator(mode="after")
    def check_tasks(self) -> "DailyContent":
        if len(self.tasks) != 3:
            raise ValueError(f"Daily content needs exactly 3 tasks, got {len(self.tasks)}")
        journaling = sum(1 for task in self.tasks if task.is_journaling)
        if journaling != 1:
            raise ValueError(f"Daily content needs exactly 1 journaling task, got {journaling}")
        return self


class FitnessTask(DocumentModel):
    id: str
    text: str
    level: int = Field(..., ge=1, le=5)
    completed: bool = False


class DailyFitness(DocumentModel):
    date: str  # YYYY-MM-DD
    tasks: list[FitnessTask] = Field(..., min_length=5, max_length=5)


class Hydration(DocumentModel):
    level: int = Field(default=0, ge=0, le=8)
    last_log_date: Optional[str] = None


class UserProgress(DocumentModel):
    """Initial shape of a user's progress document"""
    display_name: str = Field(..., min_length=1)
    avatar_url: str
    main_path: MainPath
    level: int = Field(default=1, ge=1)
    xp: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    last_quest_date: Optional[str] = None
    last_mood_date: Optional[str] = None
    last_support_message_date: Optional[str] = None
    journal: list[JournalEntry] = Field(default_factory=list)
    mood_history: list[MoodEntry] = Field(default_factory=list)
    completed_nodes: list[str] = Field(default_factory=list)
    unlocked_nodes: list[str] = Field(default_factory=list)
    completed_node_tasks: dict[str, str] = Field(default_factory=dict)
    badges: list[str] = Field(default_factory=list)
    completed_tasks_history: list[str] = Field(default_factory=list)
    fitness_completions: int = Field(default=0, ge=0)
    hydration: Hydration = Field(default_factory=Hydration)
    daily_content: Optional[DailyContent] = None
    daily_fitness: Optional[DailyFitness] = None

    def to_document(self) -> dict:
        """Day markers are written as explicit nulls; daily content is omitted until generated"""
        document = self.model_dump(by_alias=True, mode="json")
        for key in ("dailyContent", "dailyFitness"):
            if document.get(key) is None:
                document.pop(key, None)
        return document
