"""Core domain types and infrastructure."""

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
from convoflow.core.graph import FlowGraph, Node, OptionItem, OptionTable
from convoflow.core.state import SessionState, create_session_state
from convoflow.core.types import OutboundMessage, TurnResult

__all__ = [
    "FlowGraph",
    "Node",
    "OptionItem",
    "OptionTable",
    "SessionState",
    "create_session_state",
    "OutboundMessage",
    "TurnResult",
    "ConvoflowError",
    "ConfigError",
    "CompileError",
    "TemplateNotFoundError",
    "ResolutionFailure",
    "CircuitBreakerTripped",
    "SideEffectFailure",
    "PersistenceError",
]
