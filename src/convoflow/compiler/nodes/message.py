from convoflow.compiler.nodes.utils import (
    get_bool,
    get_stage_target,
    get_text,
    get_variable_name,
)
from convoflow.config.models import RawNode
from convoflow.core.graph import MessageNode


class MessageNodeFactory:
    """Factory for message nodes (SRP: single responsibility)."""

    def create(self, raw: RawNode) -> MessageNode:
        """Create a message node.

        ``capture`` and ``waitForResponse`` both make the node pause for a
        reply; the reply is stored only when a variable is named.
        """
        return MessageNode(
            id=raw.id,
            text=get_text(raw, default="") or "",
            wait_for_response=get_bool(raw, "waitForResponse", "capture"),
            variable_name=get_variable_name(raw),
            stage_target=get_stage_target(raw),
        )
