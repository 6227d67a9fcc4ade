"""
Service Layer Package

Services apply the gamification rules to user actions and persist the
results in the document store.

Core Services:
- DailyContentService: daily tasks, Big Quest, fitness set, hydration reset
- ProgressionService: mood, tasks, Big Quest, hydration, fitness rewards
- JournalService: journal entries and generated insights
- OnboardingService: initial progress document

GameSession ties them to one user's store subscription.
"""

from mindquest.services.container import ServiceContainer, create_container, create_document_store
from mindquest.services.session import GameSession

__all__ = [
    "ServiceContainer",
    "create_container",
    "create_document_store",
    "GameSession",
]
