"""convoflow - multi-tenant conversational flow compiler and interpreter.

Tenants author conversation graphs in a visual editor; convoflow compiles
them into immutable flow graphs and runs one turn per inbound message,
capturing answers, resolving free-text replies against options and
creating leads as a side effect.

Quick start:
    from convoflow import ConversationEngine
    from convoflow.config.loader import ConfigLoader

    engine = ConversationEngine.from_config(ConfigLoader.load("examples/lead_capture"))
    result = await engine.handle_message("acme", "user-1", "session-1", "hola")
    print(result.texts)
"""

from convoflow.__version__ import __version__
from convoflow.compiler.flow_compiler import FlowCompiler
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
from convoflow.core.graph import FlowGraph
from convoflow.core.state import SessionState
from convoflow.core.types import OutboundMessage, TurnResult
from convoflow.runtime.engine import ConversationEngine
from convoflow.runtime.interpreter import FlowInterpreter

__all__ = [
    "__version__",
    "ConversationEngine",
    "FlowCompiler",
    "FlowInterpreter",
    "FlowGraph",
    "SessionState",
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
