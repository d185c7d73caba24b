"""Compiled graph model.

A ``FlowGraph`` is the normalized, immutable form of a tenant's template:
typed nodes, edges, the entry triggers and one dense ``OptionTable`` per
option-bearing node. The interpreter only ever reads it.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, model_validator

from convoflow.core.constants import OptionSource


class OptionItem(BaseModel):
    """One selectable choice of an option set or condition."""

    label: str = Field(description="Text shown to the user")
    value: str = Field(default="", description="Stored value (defaults to the label)")
    description: str | None = Field(default=None, description="Optional secondary text")

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _value_defaults_to_label(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("value"):
            return {**data, "value": data.get("label", "")}
        return data


class _BaseNode(BaseModel):
    id: str = Field(description="Node identifier, unique within the graph")
    stage_target: str | None = Field(
        default=None, description="Sales-funnel stage the lead moves to when processed"
    )

    model_config = {"frozen": True}


class StartNode(_BaseNode):
    """Entry point of the graph."""

    kind: Literal["start"] = "start"
    text: str | None = None
    keywords: tuple[str, ...] = Field(default=(), description="Declared entry triggers")


class MessageNode(_BaseNode):
    """Sends text; optionally waits for (and captures) any reply."""

    kind: Literal["message"] = "message"
    text: str = ""
    wait_for_response: bool = False
    variable_name: str | None = None


class InputNode(_BaseNode):
    """Prompts for free text and captures it into a variable."""

    kind: Literal["input"] = "input"
    prompt: str
    variable_name: str
    input_type: str = "text"
    invalid_message: str | None = None


class ConditionNode(_BaseNode):
    """Branches on the reply (or on a variable that already holds a value)."""

    kind: Literal["condition"] = "condition"
    prompt: str
    branches: tuple[OptionItem, ...]
    variable_name: str | None = None
    invalid_message: str | None = None


class OptionSetNode(_BaseNode):
    """Offers a manual or catalog-backed list of choices."""

    kind: Literal["options"] = "options"
    prompt: str
    source: OptionSource = OptionSource.MANUAL
    options: tuple[OptionItem, ...] = ()
    variable_name: str | None = None
    catalog_filter: dict[str, str] = Field(default_factory=dict)
    empty_message: str | None = None
    invalid_message: str | None = None

    @property
    def is_catalog_backed(self) -> bool:
        return self.source is not OptionSource.MANUAL


class TerminalNode(_BaseNode):
    """Ends the conversation."""

    kind: Literal["end"] = "end"
    text: str | None = None


Node = Annotated[
    StartNode | MessageNode | InputNode | ConditionNode | OptionSetNode | TerminalNode,
    Field(discriminator="kind"),
]

# Nodes that route by option index
OptionBearingNode = ConditionNode | OptionSetNode


class Edge(BaseModel):
    """Directed connection between two nodes."""

    source: str
    target: str
    handle: str | None = Field(
        default=None, description="Source handle; absent means the unconditional next edge"
    )

    model_config = {"frozen": True}


class OptionTable(BaseModel):
    """Dense option index -> target node id table for one node."""

    node_id: str
    targets: tuple[str | None, ...] = ()
    default_target: str | None = None

    model_config = {"frozen": True}

    def target_for(self, index: int) -> str | None:
        """Return the target for a 0-based option index.

        Indices past the table (catalog options are only known at runtime)
        or without a dedicated edge fall back to the default target.
        """
        if 0 <= index < len(self.targets):
            target = self.targets[index]
            if target is not None:
                return target
        return self.default_target


class FlowGraph(BaseModel):
    """Executable conversation graph for one (tenant, template) pair."""

    id: str
    tenant_id: str
    template_id: str
    triggers: tuple[str, ...] = Field(min_length=1)
    entry_node_id: str
    nodes: dict[str, Node]
    edges: tuple[Edge, ...] = ()
    successors: dict[str, str] = Field(
        default_factory=dict, description="Unconditional next node per node id"
    )
    option_tables: dict[str, OptionTable] = Field(default_factory=dict)
    name_variables: frozenset[str] = frozenset()
    phone_variables: frozenset[str] = frozenset()

    model_config = {"frozen": True}

    def node(self, node_id: str) -> Node:
        return self.nodes[node_id]

    def has_node(self, node_id: str | None) -> bool:
        return node_id is not None and node_id in self.nodes

    def next_node_id(self, node_id: str) -> str | None:
        """Unconditional successor of a node, if any."""
        successor = self.successors.get(node_id)
        if successor is not None:
            return successor
        table = self.option_tables.get(node_id)
        return table.default_target if table else None

    def option_target(self, node_id: str, index: int) -> str | None:
        table = self.option_tables.get(node_id)
        if table is None:
            return self.successors.get(node_id)
        return table.target_for(index)

    def matches_trigger(self, text: str) -> bool:
        """Case-insensitive whole-phrase match against the entry triggers."""
        normalized = " ".join(text.casefold().split())
        return any(normalized == trigger.casefold() for trigger in self.triggers)

    def is_lead_variable(self, name: str) -> bool:
        return name in self.name_variables or name in self.phone_variables
