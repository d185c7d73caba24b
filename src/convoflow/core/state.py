"""Session state model and factory functions."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from convoflow.core.constants import ConversationStatus
from convoflow.core.graph import OptionItem

# Session-scoped variables; they shadow tenant-level system variables of the same name
VariableBag = dict[str, str]

SessionKey = tuple[str, str, str]


def _now() -> datetime:
    return datetime.now(UTC)


class SessionState(BaseModel):
    """Position and data of one conversation session.

    A state belongs to exactly one (tenant, user, session) triple and is
    only mutated by the interpreter turn running for that triple.
    """

    tenant_id: str
    user_id: str
    session_id: str
    template_id: str | None = Field(default=None, description="Template the session runs")
    current_node_id: str | None = Field(default=None, description="Absent means Idle")
    awaiting_input: bool = False
    awaiting_node_id: str | None = None
    expected_variable: str | None = None
    variables: VariableBag = Field(default_factory=dict)
    visited: dict[str, int] = Field(default_factory=dict)
    lead_handle: str | None = None
    lead_pending: bool = False
    status: ConversationStatus = ConversationStatus.ACTIVE
    resolved_options: dict[str, list[OptionItem]] = Field(
        default_factory=dict, description="Catalog options looked up for this session"
    )
    turn_count: int = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @property
    def key(self) -> SessionKey:
        return (self.tenant_id, self.user_id, self.session_id)

    @property
    def is_idle(self) -> bool:
        return self.current_node_id is None

    def mark_visited(self, node_id: str) -> int:
        """Increment and return the session-lifetime visit count of a node."""
        count = self.visited.get(node_id, 0) + 1
        self.visited[node_id] = count
        return count

    def await_input(self, node_id: str, variable: str | None = None) -> None:
        self.current_node_id = node_id
        self.awaiting_input = True
        self.awaiting_node_id = node_id
        self.expected_variable = variable

    def clear_awaiting(self) -> None:
        self.awaiting_input = False
        self.awaiting_node_id = None
        self.expected_variable = None

    def go_idle(self) -> None:
        self.current_node_id = None
        self.clear_awaiting()

    def complete(self) -> None:
        self.go_idle()
        self.status = ConversationStatus.COMPLETED


def create_session_state(
    tenant_id: str,
    user_id: str,
    session_id: str,
    template_id: str | None = None,
) -> SessionState:
    """Create a fresh Idle state for a session."""
    return SessionState(
        tenant_id=tenant_id,
        user_id=user_id,
        session_id=session_id,
        template_id=template_id,
    )


def state_to_json(state: SessionState) -> str:
    return state.model_dump_json()


def state_from_json(payload: str | bytes) -> SessionState:
    return SessionState.model_validate_json(payload)
