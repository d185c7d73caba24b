"""Core error hierarchy.

Every error carries optional keyword context that is appended to its
message as ``key=value`` pairs, so log lines stay greppable by tenant,
session or node without string formatting at every raise site.
"""

from typing import Any


class ConvoflowError(Exception):
    """Base class for all convoflow errors."""

    def __init__(self, message: str = "", **context: Any) -> None:
        self.message = message
        self.context: dict[str, Any] = context
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} ({details})"


class ConfigError(ConvoflowError):
    """Raised when engine configuration is invalid."""


class CompileError(ConvoflowError):
    """Raised when a template definition cannot be compiled into a flow graph."""


class TemplateNotFoundError(ConvoflowError):
    """Raised when a tenant has no template with the requested id."""


class ResolutionFailure(ConvoflowError):
    """No answer-resolution strategy matched the user's reply.

    Recoverable: the interpreter re-prompts the same node.
    """


class CircuitBreakerTripped(ConvoflowError):
    """Advancing exceeded the per-turn hop limit or the per-node repeat limit."""

    def __init__(self, message: str = "", *, reason: str, node_id: str, **context: Any) -> None:
        super().__init__(message, reason=reason, node_id=node_id, **context)
        self.reason = reason
        self.node_id = node_id


class SideEffectFailure(ConvoflowError):
    """A lead or stage operation failed. Logged and never propagated into a turn."""


class PersistenceError(ConvoflowError):
    """Session state could not be loaded or saved."""
