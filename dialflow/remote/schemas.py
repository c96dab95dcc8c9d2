"""Wire schemas for the dialplan graph API.

Field names follow the server's camelCase JSON; Python code uses the
snake_case attribute names.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class WirePosition(_Wire):
    x: float = 0.0
    y: float = 0.0


class NodeCreate(_Wire):
    """Body of ``POST /dialplan/contexts/{ctx}/nodes``."""

    node_type_id: int = Field(alias="nodeTypeId")
    name: str
    label: str
    position: WirePosition
    properties: dict[str, Any] = Field(default_factory=dict)


class NodeUpdate(_Wire):
    """Body of ``PUT /dialplan/nodes/{id}``; omitted fields stay unchanged."""

    label: str | None = None
    position: WirePosition | None = None
    properties: dict[str, Any] | None = None


class EdgeCreate(_Wire):
    """Body of ``POST /dialplan/connections``."""

    source_node_id: int = Field(alias="sourceNodeId", gt=0)
    target_node_id: int = Field(alias="targetNodeId", gt=0)
    condition: str | None = None
    priority: int = Field(default=1, ge=1)


class PersistedNode(_Wire):
    id: int
    context_id: int | None = Field(default=None, alias="contextId")
    node_type_id: int = Field(alias="nodeTypeId")
    name: str = ""
    label: str = ""
    position: WirePosition = Field(default_factory=WirePosition)
    properties: dict[str, Any] = Field(default_factory=dict)


class PersistedEdge(_Wire):
    id: int
    source_node_id: int = Field(alias="sourceNodeId")
    target_node_id: int = Field(alias="targetNodeId")
    condition: str | None = None
    priority: int = 1


class NodeTypeRecord(_Wire):
    """One entry of ``GET /dialplan/node-types``."""

    id: int
    name: str
    description: str = ""
    category: str = ""
    role: str | None = None
    default_params: dict[str, Any] = Field(default_factory=dict, alias="defaultParams")
