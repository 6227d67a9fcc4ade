"""Outcome models returned by game actions"""
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class NoticeKind(str, Enum):
    """How the presentation layer should surface a notice"""
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
    REWARD = "reward"
    JOURNAL_PROMPT = "journal_prompt"
    NODE_UNLOCKED = "node_unlocked"
    FITNESS_HUB_UNLOCKED = "fitness_hub_unlocked"
    FITNESS_COMPLETE = "fitness_complete"
    SUPPORT = "support"


class Notice(BaseModel):
    """A user-facing message (toast or modal)"""
    kind: NoticeKind
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


class ActionResult(BaseModel):
    """
    Result of one user action

    Attributes:
        success: False when the persistence write failed
        xp_gained: XP granted by the action, badge bonuses included
        new_badges: Badge ids earned by the action
        notices: Messages for the user, in display order
        updates: Field updates written to the document, merged across writes
    """
    success: bool = True
    xp_gained: int = 0
    new_badges: list[str] = Field(default_factory=list)
    notices: list[Notice] = Field(default_factory=list)
    updates: dict[str, Any] = Field(default_factory=dict)

    def notify(self, kind: NoticeKind, message: str, **data: Any) -> "ActionResult":
        self.notices.append(Notice(kind=kind, message=message, data=data))
        return self

    def fail(self, message: str) -> "ActionResult":
        self.success = False
        return self.notify(NoticeKind.ERROR, message)

    def has_notice(self, kind: NoticeKind) -> bool:
        return any(notice.kind == kind for notice in self.notices)
