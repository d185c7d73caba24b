"""Runtime module."""

from convoflow.runtime.checkpointer import create_session_store
from convoflow.runtime.engine import ConversationEngine
from convoflow.runtime.interpreter import FlowInterpreter, TurnOutcome
from convoflow.runtime.locks import KeyedLock

__all__ = [
    "ConversationEngine",
    "FlowInterpreter",
    "TurnOutcome",
    "KeyedLock",
    "create_session_store",
]
