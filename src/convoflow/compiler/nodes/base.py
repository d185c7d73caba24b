"""Base protocol for node factories."""

from typing import Protocol

from convoflow.config.models import RawNode
from convoflow.core.graph import Node


class NodeFactory(Protocol):
    """Protocol for node type factories (OCP: Open for extension)."""

    def create(self, raw: RawNode) -> Node:
        """Create a typed node from its editor definition.

        Raises:
            CompileError: If the definition lacks a required field
        """
        ...
