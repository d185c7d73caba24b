"""Template definition models.

These mirror the JSON produced by the visual flow editor:

    { nodes: [{ id, type, data }], edges: [{ source, target, sourceHandle? }] }

They are deliberately loose (``data`` is a free-form dict); the compiler is
responsible for turning them into typed nodes.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RawNode(BaseModel):
    """A node as authored in the editor."""

    id: str = Field(description="Node identifier")
    type: str = Field(description="Editor node type, e.g. 'input' or 'buttonsNode'")
    data: dict[str, Any] = Field(default_factory=dict, description="Per-node metadata")

    model_config = ConfigDict(extra="ignore")


class RawEdge(BaseModel):
    """An edge as authored in the editor."""

    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    id: str | None = None

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TemplateDefinition(BaseModel):
    """A complete raw template."""

    id: str | None = Field(default=None, description="Template identifier")
    name: str | None = Field(default=None, description="Human readable name")
    nodes: list[RawNode] = Field(default_factory=list)
    edges: list[RawEdge] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
