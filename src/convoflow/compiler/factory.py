"""Node factory registry (OCP: extensible without modification)."""

import re

from convoflow.compiler.nodes import (
    ConditionNodeFactory,
    EndNodeFactory,
    InputNodeFactory,
    MessageNodeFactory,
    NodeFactory,
    OptionSetNodeFactory,
    StartNodeFactory,
)
from convoflow.core.constants import OptionSource
from convoflow.core.errors import CompileError

_NODE_SUFFIX = re.compile(r"[-_]?node$", re.IGNORECASE)
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def normalize_node_type(node_type: str) -> str:
    """Map editor spellings onto registry keys.

    Examples:
        >>> normalize_node_type("buttonsNode")
        'buttons'
        >>> normalize_node_type("checkAvailability")
        'check-availability'
    """
    name = _NODE_SUFFIX.sub("", node_type.strip())
    name = _CAMEL_BOUNDARY.sub("-", name)
    return name.replace("_", "-").lower()


class NodeFactoryRegistry:
    """Registry for node factories."""

    _factories: dict[str, NodeFactory] = {}

    @classmethod
    def register(cls, node_type: str, factory: NodeFactory) -> None:
        """Register a new node factory."""
        cls._factories[normalize_node_type(node_type)] = factory

    @classmethod
    def get(cls, node_type: str) -> NodeFactory:
        """Get factory for node type."""
        factory = cls._factories.get(normalize_node_type(node_type))
        if not factory:
            raise CompileError(
                f"Unknown node type: '{node_type}'. Available: {sorted(cls._factories.keys())}"
            )
        return factory

    @classmethod
    def types(cls) -> list[str]:
        return sorted(cls._factories)


# Initialize default factories
NodeFactoryRegistry.register("start", StartNodeFactory())
NodeFactoryRegistry.register("message", MessageNodeFactory())
NodeFactoryRegistry.register("input", InputNodeFactory())
NodeFactoryRegistry.register("condition", ConditionNodeFactory())
NodeFactoryRegistry.register("options", OptionSetNodeFactory(OptionSource.MANUAL))
NodeFactoryRegistry.register("buttons", OptionSetNodeFactory(OptionSource.MANUAL))
NodeFactoryRegistry.register("list", OptionSetNodeFactory(OptionSource.MANUAL))
NodeFactoryRegistry.register("categories", OptionSetNodeFactory(OptionSource.CATEGORIES))
NodeFactoryRegistry.register("products", OptionSetNodeFactory(OptionSource.PRODUCTS))
NodeFactoryRegistry.register("check-availability", OptionSetNodeFactory(OptionSource.AVAILABILITY))
NodeFactoryRegistry.register("end", EndNodeFactory())


def get_factory_for_type(node_type: str) -> NodeFactory:
    """Get the appropriate factory for a node type."""
    return NodeFactoryRegistry.get(node_type)
