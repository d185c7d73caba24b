from convoflow.compiler.nodes.utils import get_stage_target, get_text
from convoflow.config.models import RawNode
from convoflow.core.graph import TerminalNode


class EndNodeFactory:
    """Factory for terminal nodes (SRP: single responsibility)."""

    def create(self, raw: RawNode) -> TerminalNode:
        return TerminalNode(id=raw.id, text=get_text(raw), stage_target=get_stage_target(raw))
