"""API Models - Pydantic models for FastAPI endpoints.

Defines request and response schemas for the convoflow REST API.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from convoflow.core.state import SessionState
from convoflow.core.types import OutboundMessage


class ChatRequest(BaseModel):
    """Request model for one inbound message."""

    tenant_id: str = Field(min_length=1, description="Tenant the conversation belongs to")
    user_id: str = Field(min_length=1, description="End user (e.g. channel address)")
    session_id: str = Field(min_length=1, description="Conversation session")
    message: str = Field(min_length=1, description="User's input message")


class OptionModel(BaseModel):
    label: str
    value: str
    description: str | None = None


class MessageModel(BaseModel):
    """One outbound message: text, optionally with an ordered option list."""

    text: str
    options: list[OptionModel] = Field(default_factory=list)

    @classmethod
    def from_outbound(cls, message: OutboundMessage) -> "MessageModel":
        return cls(
            text=message.text,
            options=[OptionModel(**option.model_dump()) for option in message.options],
        )


class ChatResponse(BaseModel):
    """Response model for a processed message."""

    messages: list[MessageModel] = Field(description="Outbound messages in delivery order")
    status: str = Field(description="Conversation status (active, completed)")
    current_node_id: str | None = Field(
        default=None, description="Absent when the session is Idle"
    )
    awaiting_input: bool = False
    lead_handle: str | None = None


class SessionResponse(BaseModel):
    """Response model for the session inspection endpoint."""

    tenant_id: str
    user_id: str
    session_id: str
    template_id: str | None
    status: str
    current_node_id: str | None
    awaiting_input: bool
    expected_variable: str | None
    variables: dict[str, str]
    lead_handle: str | None
    turn_count: int

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionResponse":
        return cls(
            tenant_id=state.tenant_id,
            user_id=state.user_id,
            session_id=state.session_id,
            template_id=state.template_id,
            status=state.status.value,
            current_node_id=state.current_node_id,
            awaiting_input=state.awaiting_input,
            expected_variable=state.expected_variable,
            variables=dict(state.variables),
            lead_handle=state.lead_handle,
            turn_count=state.turn_count,
        )


class ResetResponse(BaseModel):
    """Response model for reset endpoint."""

    success: bool
    message: str


class RecompileResponse(BaseModel):
    """Response model for the template recompilation endpoint."""

    tenant_id: str
    template_id: str
    nodes: int
    triggers: list[str]


class ComponentStatus(BaseModel):
    """Status of a single component."""

    name: str
    status: Literal["healthy", "degraded", "unhealthy"]
    message: str | None = None


class HealthResponse(BaseModel):
    """Health check response with component details."""

    status: Literal["healthy", "starting", "degraded", "unhealthy"]
    version: str
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    components: dict[str, ComponentStatus] | None = None


class ReadinessResponse(BaseModel):
    """Readiness probe response."""

    ready: bool
    message: str
    checks: dict[str, bool] | None = None


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(description="Full version string")
    major: int = Field(description="Major version number")
    minor: int = Field(description="Minor version number")
    patch: str = Field(description="Patch version (may include suffix)")
