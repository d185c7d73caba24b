"""Core value types shared between the interpreter and its host."""

from pydantic import BaseModel, Field

from convoflow.core.graph import OptionItem
from convoflow.core.state import SessionState


class OutboundMessage(BaseModel):
    """A message to deliver: plain text, or text plus an ordered option list."""

    text: str
    options: list[OptionItem] = Field(default_factory=list)

    @property
    def has_options(self) -> bool:
        return bool(self.options)


class TurnResult(BaseModel):
    """What one turn hands back to the host."""

    messages: list[OutboundMessage] = Field(default_factory=list)
    state: SessionState

    @property
    def texts(self) -> list[str]:
        return [message.text for message in self.messages]
