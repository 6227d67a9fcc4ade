"""Unit tests for the service container"""
from unittest.mock import AsyncMock

import pytest

from mindquest.db.document_store import InMemoryDocumentStore
from mindquest.exceptions import ConfigurationError
from mindquest.generation.client import GenerationClient
from mindquest.services import GameSession, ServiceContainer, create_container, create_document_store


@pytest.fixture
def container(store, generation_client, clock):
    return ServiceContainer(store=store, generation_client=generation_client, clock=clock)


def test_services_are_lazy_singletons(container):
    assert container._progression_service is None

    progression = container.progression_service

    assert container.progression_service is progression
    assert progression.store is container.store
    assert progression.clock is container.clock
    assert container.daily_content_service.generation_client is container.generation_client
    assert container.journal_service.generation_client is container.generation_client


def test_create_session_wires_services(container):
    session = container.create_session("user-123")

    assert isinstance(session, GameSession)
    assert session.user_id == "user-123"
    assert session.progression is container.progression_service
    assert session.onboarding is container.onboarding_service


@pytest.mark.asyncio
async def test_close_releases_client(container):
    container.generation_client.aclose = AsyncMock()

    await container.close()

    container.generation_client.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_memory_document_store():
    assert isinstance(await create_document_store("memory"), InMemoryDocumentStore)


@pytest.mark.asyncio
async def test_unknown_document_store():
    with pytest.raises(ConfigurationError):
        await create_document_store("sqlite")


@pytest.mark.asyncio
async def test_create_container():
    container = await create_container("memory", "http://proxy.test/api/generateContent")

    assert isinstance(container.store, InMemoryDocumentStore)
    assert isinstance(container.generation_client, GenerationClient)
    assert container.generation_client.endpoint_url == "http://proxy.test/api/generateContent"
    await container.close()
