"""Shared fixtures for convoflow tests.

Engines are wired with in-memory stores and AsyncMock lead services, so
every conversation test is deterministic and needs no network or disk.
"""

import logging

import pytest

from convoflow.config.repository import InMemoryTemplateRepository
from convoflow.config.settings import EngineSettings
from convoflow.du.validators import clear_validators
from convoflow.persistence.memory import InMemorySessionStore
from convoflow.runtime.engine import ConversationEngine
from factories import TENANT, lead_capture_template
from mocks import make_lead_service


@pytest.fixture(autouse=True)
def propagate_convoflow_logs():
    """Undo setup_logging so caplog sees convoflow records."""
    yield
    logger = logging.getLogger("convoflow")
    logger.propagate = True
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def restore_validators():
    """Drop validators registered by a test."""
    yield
    clear_validators()


@pytest.fixture
def lead_service():
    return make_lead_service()


@pytest.fixture
def repository() -> InMemoryTemplateRepository:
    """Repository with the lead capture template active for the test tenant."""
    repo = InMemoryTemplateRepository()
    repo.add(TENANT, "lead", lead_capture_template())
    return repo


@pytest.fixture
def store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings()


@pytest.fixture
def engine(settings, repository, store, lead_service) -> ConversationEngine:
    return ConversationEngine(settings, repository, store, lead_service)
