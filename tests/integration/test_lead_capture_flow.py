"""End-to-end lead capture conversations through ConversationEngine."""

import pytest

from convoflow.actions.leads import InMemoryLeadService
from convoflow.config.repository import InMemoryTemplateRepository
from convoflow.persistence.sqlite import SqliteSessionStore
from convoflow.runtime.engine import ConversationEngine
from factories import SESSION, TENANT, USER, lead_capture_template

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_three_turn_lead_capture(engine, lead_service):
    """Test greeting, name and phone produce the expected messages and one lead."""
    # Act
    first = await engine.handle_message(TENANT, USER, SESSION, "hello")
    second = await engine.handle_message(TENANT, USER, SESSION, "Ana")
    third = await engine.handle_message(TENANT, USER, SESSION, "555-1")

    # Assert
    assert first.texts == ["hi", "name?"]
    assert second.texts == ["phone?"]
    assert third.texts == ["thanks Ana"]
    lead_service.create_lead.assert_awaited_once()
    assert third.state.status.value == "completed"


@pytest.mark.asyncio
async def test_new_conversation_after_completion(engine, lead_service):
    """Test a completed session starts over without creating a second lead."""
    for message in ("hello", "Ana", "555-1"):
        await engine.handle_message(TENANT, USER, SESSION, message)

    again = await engine.handle_message(TENANT, USER, SESSION, "hello")

    assert again.texts == ["hi", "name?"]
    assert again.state.status.value == "active"
    assert again.state.lead_handle == "lead-1"
    lead_service.create_lead.assert_awaited_once()


@pytest.mark.asyncio
async def test_conversation_survives_restart(tmp_path):
    """Test a session continues with a new engine over the same SQLite file."""
    # Arrange
    repository = InMemoryTemplateRepository()
    repository.add(TENANT, "lead", lead_capture_template())
    leads = InMemoryLeadService()
    db_path = tmp_path / "sessions.db"

    first_engine = ConversationEngine(None, repository, SqliteSessionStore(db_path), leads)
    await first_engine.handle_message(TENANT, USER, SESSION, "hello")
    await first_engine.handle_message(TENANT, USER, SESSION, "Ana")
    await first_engine.close()

    # Act
    second_engine = ConversationEngine(None, repository, SqliteSessionStore(db_path), leads)
    result = await second_engine.handle_message(TENANT, USER, SESSION, "555-1")
    await second_engine.close()

    # Assert
    assert result.texts == ["thanks Ana"]
    assert len(leads.leads_for(TENANT)) == 1
