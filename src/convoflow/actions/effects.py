"""Side effect intents recorded by the interpreter during a turn."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CreateLead:
    """Create the session's lead from the captured fields."""

    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionStage:
    """Move the session's lead to a sales-funnel stage."""

    stage_id: str
    node_id: str


SideEffect = CreateLead | TransitionStage
