"""Tests for SessionState helpers."""

from convoflow.core.constants import ConversationStatus
from convoflow.core.graph import OptionItem
from convoflow.core.state import state_from_json, state_to_json
from factories import SESSION, TENANT, USER, make_state


def test_fresh_state_is_idle():
    """Test a new state has no current node."""
    state = make_state()
    assert state.is_idle
    assert state.key == (TENANT, USER, SESSION)
    assert state.status is ConversationStatus.ACTIVE
    assert state.turn_count == 0


def test_await_input_and_clear():
    """Test awaiting flags are set and cleared together."""
    # Arrange
    state = make_state()

    # Act
    state.await_input("ask_name", "name")

    # Assert
    assert state.current_node_id == "ask_name"
    assert state.awaiting_input
    assert state.awaiting_node_id == "ask_name"
    assert state.expected_variable == "name"

    # Act
    state.clear_awaiting()

    # Assert
    assert not state.awaiting_input
    assert state.awaiting_node_id is None
    assert state.expected_variable is None
    assert state.current_node_id == "ask_name"


def test_complete_goes_idle():
    """Test completing a conversation returns the session to Idle."""
    state = make_state()
    state.await_input("ask_name", "name")

    state.complete()

    assert state.is_idle
    assert not state.awaiting_input
    assert state.status is ConversationStatus.COMPLETED


def test_mark_visited_counts_per_node():
    """Test visit counts grow per node."""
    state = make_state()
    assert state.mark_visited("a") == 1
    assert state.mark_visited("a") == 2
    assert state.mark_visited("b") == 1


def test_json_round_trip_keeps_resolved_options():
    """Test serialized state restores variables and catalog options."""
    # Arrange
    state = make_state(variables={"name": "Ana"})
    state.resolved_options["cats"] = [OptionItem(label="SUV")]

    # Act
    restored = state_from_json(state_to_json(state))

    # Assert
    assert restored == state
