"""Catalog-backed conversations using the example configuration."""

from pathlib import Path

import pytest

from convoflow.actions.leads import InMemoryLeadService
from convoflow.config.loader import ConfigLoader
from convoflow.runtime.engine import ConversationEngine

pytestmark = pytest.mark.integration

EXAMPLE_CONFIG = Path(__file__).parents[2] / "examples" / "lead_capture"
TENANT = "acme"


@pytest.mark.asyncio
async def test_test_drive_booking():
    """Test category, model and slot selection ends with a confirmation."""
    # Arrange
    engine = ConversationEngine.from_config(ConfigLoader.load(EXAMPLE_CONFIG))

    # Act
    greeting = await engine.handle_message(TENANT, "u1", "s1", "Test drive")
    models = await engine.handle_message(TENANT, "u1", "s1", "2")
    slots = await engine.handle_message(TENANT, "u1", "s1", "CR-V")
    done = await engine.handle_message(TENANT, "u1", "s1", "1")

    # Assert
    assert greeting.state.template_id == "catalog"
    assert [o.label for o in greeting.messages[0].options] == ["Sedan", "SUV"]
    assert models.messages[0].text == "These are our SUV models:"
    assert [(o.label, o.description) for o in models.messages[0].options] == [
        ("CR-V", "$31000")
    ]
    assert [o.label for o in slots.messages[0].options] == ["Monday 10:00", "Tuesday 16:00"]
    assert done.texts == ["Booked a CR-V test drive for Monday 10:00."]
    assert done.state.status.value == "completed"


@pytest.mark.asyncio
async def test_invalid_choice_reprompts():
    """Test an unknown answer repeats the options without advancing."""
    engine = ConversationEngine.from_config(ConfigLoader.load(EXAMPLE_CONFIG))
    await engine.handle_message(TENANT, "u1", "s1", "catalogo")

    result = await engine.handle_message(TENANT, "u1", "s1", "a truck")

    assert result.state.current_node_id == "pick_category"
    assert result.messages[-1].options
    assert "selected_category" not in result.state.variables


@pytest.mark.asyncio
async def test_lead_capture_then_callback():
    """Test the lead capture template creates a lead and moves it through stages."""
    # Arrange
    leads = InMemoryLeadService()
    engine = ConversationEngine.from_config(ConfigLoader.load(EXAMPLE_CONFIG), lead_service=leads)

    # Act
    for message in ("hola", "Ana", "+54 11 5555 1234"):
        await engine.handle_message(TENANT, "u2", "s1", message)
    result = await engine.handle_message(TENANT, "u2", "s1", "yes")

    # Assert
    assert result.texts[-1] == "Thanks for reaching out, Ana!"
    (lead,) = leads.leads_for(TENANT)
    assert lead.fields["name"] == "Ana"
    assert lead.stage_history == ["new", "prospecting", "opportunity"]
