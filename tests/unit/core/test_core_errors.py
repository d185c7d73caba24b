"""Tests for the error hierarchy."""

import pytest

from convoflow.core.errors import (
    CircuitBreakerTripped,
    CompileError,
    ConfigError,
    ConvoflowError,
    PersistenceError,
    ResolutionFailure,
    SideEffectFailure,
    TemplateNotFoundError,
)


@pytest.mark.parametrize(
    "error_class",
    [
        ConfigError,
        CompileError,
        TemplateNotFoundError,
        ResolutionFailure,
        SideEffectFailure,
        PersistenceError,
    ],
)
def test_errors_share_base_class(error_class):
    """Test every error derives from ConvoflowError."""
    assert issubclass(error_class, ConvoflowError)


def test_context_appended_to_message():
    """Test keyword context is rendered after the message."""
    # Arrange & Act
    error = CompileError("Duplicate node id", node_id="n1")

    # Assert
    assert str(error) == "Duplicate node id (node_id=n1)"
    assert error.context == {"node_id": "n1"}
    assert error.message == "Duplicate node id"


def test_message_without_context():
    """Test plain message when there is no context."""
    assert str(ConfigError("bad")) == "bad"


def test_circuit_breaker_carries_reason_and_node():
    """Test breaker errors expose reason and node id."""
    # Arrange & Act
    error = CircuitBreakerTripped("too many", reason="hop_limit", node_id="loop")

    # Assert
    assert error.reason == "hop_limit"
    assert error.node_id == "loop"
    assert "reason=hop_limit" in str(error)
