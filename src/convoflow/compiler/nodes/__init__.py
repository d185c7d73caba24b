"""Node factories module."""

from convoflow.compiler.nodes.base import NodeFactory
from convoflow.compiler.nodes.condition import ConditionNodeFactory
from convoflow.compiler.nodes.end import EndNodeFactory
from convoflow.compiler.nodes.input import InputNodeFactory
from convoflow.compiler.nodes.message import MessageNodeFactory
from convoflow.compiler.nodes.options import OptionSetNodeFactory
from convoflow.compiler.nodes.start import StartNodeFactory

__all__ = [
    "NodeFactory",
    "StartNodeFactory",
    "MessageNodeFactory",
    "InputNodeFactory",
    "ConditionNodeFactory",
    "OptionSetNodeFactory",
    "EndNodeFactory",
]
