"""Pydantic models for generated content and the generation wire format"""
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from mindquest.models.progress import TaskCategory


class Part(BaseModel):
    text: str


class Content(BaseModel):
    parts: list[Part]


class GenerateContentRequest(BaseModel):
    """Request body sent to the generation endpoint"""
    contents: list[Content]

    @classmethod
    def from_prompt(cls, prompt: str) -> "GenerateContentRequest":
        return cls(contents=[Content(parts=[Part(text=prompt)])])


class ProxyErrorResponse(BaseModel):
    """Error body returned by the generation proxy"""
    message: str
    details: Optional[str] = None


class GeneratedTask(BaseModel):
    category: TaskCategory
    task: str = Field(..., min_length=1)
    is_journaling: bool = Field(..., alias="isJournaling")

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value: Any) -> Any:
        # Models sometimes answer "focus" instead of "Focus"
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


class GeneratedBigQuest(BaseModel):
    path: str
    task: str = Field(..., min_length=1)


class GeneratedDailyContent(BaseModel):
    """Expected JSON for the daily task set"""
    daily_tasks: list[GeneratedTask] = Field(..., min_length=3, max_length=3)
    big_quest: GeneratedBigQuest

    @model_validator(mode="after")
    def check_single_journaling_task(self) -> "GeneratedDailyContent":
        journaling = sum(1 for task in self.daily_tasks if task.is_journaling)
        if journaling != 1:
            raise ValueError(f"Expected exactly one journaling task, got {journaling}")
        return self


class GeneratedFitnessTask(BaseModel):
    level: int = Field(..., ge=1, le=5)
    task: str = Field(..., min_length=1)


class GeneratedFitnessPlan(BaseModel):
    """Expected JSON for the daily fitness set"""
    fitness_tasks: list[GeneratedFitnessTask] = Field(..., min_length=5, max_length=5)
