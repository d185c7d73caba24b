"""Background side-effect dispatch across several sessions."""

import asyncio
import logging

import pytest

from convoflow.actions.leads import InMemoryLeadService
from convoflow.config.repository import InMemoryTemplateRepository
from convoflow.config.settings import EngineSettings, SideEffectsConfig
from convoflow.core.constants import DispatchMode
from convoflow.persistence.memory import InMemorySessionStore
from convoflow.runtime.engine import ConversationEngine
from factories import TENANT, chain, make_template, node
from mocks import FlakySessionStore

pytestmark = pytest.mark.integration


def staged_template():
    """Lead capture followed by two nodes that move the lead through stages."""
    return make_template(
        [
            node("start", "start"),
            node("name", "input", prompt="Name?", variableName="name"),
            node("phone", "input", prompt="Phone?", variableName="phone"),
            node("qualify", "message", message="Noted", stageTarget="calificacion"),
            node("bye", "end", message="Bye", stageTarget="cerrado"),
        ],
        chain("start", "name", "phone", "qualify", "bye"),
    )


@pytest.fixture
def background_engine():
    repository = InMemoryTemplateRepository()
    repository.add(TENANT, "staged", staged_template())
    settings = EngineSettings(side_effects=SideEffectsConfig(mode=DispatchMode.BACKGROUND))
    leads = InMemoryLeadService()
    engine = ConversationEngine(settings, repository, InMemorySessionStore(), leads)
    return engine, leads


@pytest.mark.asyncio
async def test_effects_applied_in_order(background_engine):
    """Test queued lead creation runs before the stage transitions that follow it."""
    # Arrange
    engine, leads = background_engine

    # Act
    for message in ("hi", "Ana", "5551234"):
        await engine.handle_message(TENANT, "u1", "s1", message)
    await engine.drain()

    # Assert
    (lead,) = leads.leads_for(TENANT)
    assert lead.stage_history == ["new", "qualification", "closed"]
    state = await engine.get_session(TENANT, "u1", "s1")
    assert state.lead_handle == lead.handle
    assert not state.lead_pending


@pytest.mark.asyncio
async def test_many_sessions_in_parallel(background_engine):
    """Test concurrent sessions each create exactly one lead."""
    engine, leads = background_engine

    async def converse(user: str):
        for message in ("hi", f"User {user}", "5551234"):
            await engine.handle_message(TENANT, user, "s1", message)

    await asyncio.gather(*(converse(f"u{i}") for i in range(10)))
    await engine.close()

    assert len(leads.leads_for(TENANT)) == 10
    names = sorted(lead.fields["name"] for lead in leads.leads_for(TENANT))
    assert names == sorted(f"User u{i}" for i in range(10))


@pytest.mark.asyncio
async def test_unreadable_session_is_not_overwritten(caplog):
    """Test a job whose load fails skips its effects and keeps the stored session."""
    # Arrange
    repository = InMemoryTemplateRepository()
    repository.add(TENANT, "staged", staged_template())
    settings = EngineSettings(side_effects=SideEffectsConfig(mode=DispatchMode.BACKGROUND))
    leads = InMemoryLeadService()
    store = FlakySessionStore()
    engine = ConversationEngine(settings, repository, store, leads)
    for message in ("hi", "Ana", "5551234"):
        await engine.handle_message(TENANT, "u1", "s1", message)

    # Act
    store.fail_load = True
    with caplog.at_level(logging.ERROR, logger="convoflow.runtime.engine"):
        await engine.drain()

    # Assert
    saved = store.states[(TENANT, "u1", "s1")]
    assert saved.variables == {"name": "Ana", "phone": "5551234"}
    assert saved.turn_count == 3
    assert saved.lead_pending
    assert store.save_calls == 3
    assert leads.leads_for(TENANT) == []
    assert "side effects skipped" in caplog.text


@pytest.mark.asyncio
async def test_missing_session_is_not_recreated():
    """Test a job finding no stored state does not save one."""
    repository = InMemoryTemplateRepository()
    repository.add(TENANT, "staged", staged_template())
    settings = EngineSettings(side_effects=SideEffectsConfig(mode=DispatchMode.BACKGROUND))
    leads = InMemoryLeadService()
    store = FlakySessionStore()
    engine = ConversationEngine(settings, repository, store, leads)
    for message in ("hi", "Ana", "5551234"):
        await engine.handle_message(TENANT, "u1", "s1", message)

    store.states.clear()
    await engine.drain()

    assert store.states == {}
    assert leads.leads_for(TENANT) == []
