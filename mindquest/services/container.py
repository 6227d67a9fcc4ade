"""
Service Container - Dependency Injection Container

Holds the infrastructure (document store, generation client, clock) and
builds services lazily on first access. Containers are created explicitly
by the entry point or the tests and passed to whoever needs them.
"""

from dataclasses import dataclass, field
from typing import Optional
from zoneinfo import ZoneInfo
import logging
import random

from mindquest.config import DATABASE_URL, DOCUMENT_STORE, GENERATION_ENDPOINT_URL
from mindquest.db.document_store import DocumentStore, InMemoryDocumentStore
from mindquest.exceptions import ConfigurationError
from mindquest.generation.client import GenerationClient
from mindquest.services.session import NoticeListener
from mindquest.utils.datetime_helpers import Clock, now_utc

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    Infrastructure dependencies (store, generation_client) are injected.
    """

    # Infrastructure dependencies (injected)
    store: DocumentStore
    generation_client: GenerationClient
    clock: Clock = now_utc
    tz: Optional[ZoneInfo] = None
    rng: Optional[random.Random] = None

    # Services (lazy-loaded via properties)
    _daily_content_service: Optional[object] = field(default=None, init=False, repr=False)
    _progression_service: Optional[object] = field(default=None, init=False, repr=False)
    _journal_service: Optional[object] = field(default=None, init=False, repr=False)
    _onboarding_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def daily_content_service(self):
        """Get DailyContentService instance (lazy-loaded)"""
        if self._daily_content_service is None:
            from mindquest.services.daily_content_service import DailyContentService
            self._daily_content_service = DailyContentService(
                self.store,
                self.generation_client,
                clock=self.clock,
                tz=self.tz,
                rng=self.rng
            )
            logger.debug("DailyContentService instantiated")
        return self._daily_content_service

    @property
    def progression_service(self):
        """Get ProgressionService instance (lazy-loaded)"""
        if self._progression_service is None:
            from mindquest.services.progression_service import ProgressionService
            self._progression_service = ProgressionService(self.store, clock=self.clock, tz=self.tz)
            logger.debug("ProgressionService instantiated")
        return self._progression_service

    @property
    def journal_service(self):
        """Get JournalService instance (lazy-loaded)"""
        if self._journal_service is None:
            from mindquest.services.journal_service import JournalService
            self._journal_service = JournalService(
                self.store,
                self.generation_client,
                clock=self.clock,
                tz=self.tz
            )
            logger.debug("JournalService instantiated")
        return self._journal_service

    @property
    def onboarding_service(self):
        """Get OnboardingService instance (lazy-loaded)"""
        if self._onboarding_service is None:
            from mindquest.services.onboarding_service import OnboardingService
            self._onboarding_service = OnboardingService(self.store, clock=self.clock, tz=self.tz)
            logger.debug("OnboardingService instantiated")
        return self._onboarding_service

    def create_session(self, user_id: str, on_notices: Optional[NoticeListener] = None):
        """New GameSession for an authenticated user (call start() on it)"""
        from mindquest.services.session import GameSession
        return GameSession(
            user_id,
            self.store,
            daily_content=self.daily_content_service,
            progression=self.progression_service,
            journal=self.journal_service,
            onboarding=self.onboarding_service,
            on_notices=on_notices
        )

    async def close(self) -> None:
        await self.generation_client.aclose()
        await self.store.close()
        logger.info("Service container closed")


async def create_document_store(backend: str = DOCUMENT_STORE, database_url: str = DATABASE_URL) -> DocumentStore:
    """
    Build the configured document store

    Args:
        backend: "memory" or "postgres"
        database_url: Connection string for the postgres backend
    """
    if backend == "memory":
        logger.info("Using in-memory document store")
        return InMemoryDocumentStore()

    if backend == "postgres":
        from mindquest.db.connection import Database
        from mindquest.db.postgres_store import PostgresDocumentStore

        db = Database(database_url)
        await db.init_pool()
        store = PostgresDocumentStore(db)
        await store.ensure_schema()
        logger.info("Using PostgreSQL document store")
        return store

    raise ConfigurationError(message=f"Unknown document store backend: {backend}", config_key="DOCUMENT_STORE")


async def create_container(
    backend: str = DOCUMENT_STORE,
    endpoint_url: str = GENERATION_ENDPOINT_URL,
    **kwargs
) -> ServiceContainer:
    """Container wired from configuration"""
    store = await create_document_store(backend)
    return ServiceContainer(store=store, generation_client=GenerationClient(endpoint_url), **kwargs)
