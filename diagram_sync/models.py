"""
Core data models for diagram graphs.

These models define the canonical schema shared by the parsers, the
generator and the interactive editor:
- Nodes with a stable id, label, position, size and selection flag
- Edges connecting nodes (using source/target naming convention)
- The snapshot envelope used for file import/export

Field Naming Convention:
- Edges use `source` and `target`, nodes carry `label` at the top level
- For compatibility with the editing surface, the flow-editor shape
  (`data.label`, `style.width`, edge `type`) is accepted on input and converted
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


SNAPSHOT_VERSION = "1.0"

DEFAULT_NODE_WIDTH = 120
DEFAULT_NODE_HEIGHT = 60
DEFAULT_EDGE_KIND = "smoothstep"


class EngineTag(str, Enum):
    """Supported diagram description languages."""
    MERMAID = "mermaid"
    PLANTUML = "plantuml"
    GRAPHVIZ = "graphviz"
    D2 = "d2"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Position(BaseModel):
    """Top-left corner of a node on the canvas."""
    x: float = 0
    y: float = 0


class Size(BaseModel):
    """Rendered size of a node."""
    width: float = DEFAULT_NODE_WIDTH
    height: float = DEFAULT_NODE_HEIGHT


class Node(BaseModel):
    """A node in the diagram graph."""
    id: str
    label: str
    position: Position = Field(default_factory=Position)
    size: Size = Field(default_factory=Size)
    selected: bool = False

    @model_validator(mode='before')
    @classmethod
    def convert_flow_fields(cls, data: Any) -> Any:
        """Convert the editor's `data.label` / `style` shape to canonical fields."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        flow_data = data.pop('data', None)
        if isinstance(flow_data, dict) and 'label' not in data and 'label' in flow_data:
            data['label'] = flow_data['label']
        style = data.pop('style', None)
        if isinstance(style, dict) and 'size' not in data:
            size = {
                key: style[key] for key in ('width', 'height')
                if isinstance(style.get(key), (int, float)) and not isinstance(style.get(key), bool)
            }
            if size:
                data['size'] = size
        # The editor's node `type` is a renderer hint, not part of the model
        data.pop('type', None)
        return data


class Edge(BaseModel):
    """
    A directed edge connecting two nodes.

    The id defaults to "<source>-<target>"; parallel edges between the same
    ordered pair therefore share an id.
    """
    id: str
    source: str  # Source node ID
    target: str  # Target node ID
    label: Optional[str] = None
    kind: str = DEFAULT_EDGE_KIND
    selected: bool = False

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Accept `type` as `kind` and derive a missing id from the endpoints."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if 'type' in data:
            edge_type = data.pop('type')
            if 'kind' not in data and edge_type:
                data['kind'] = edge_type
        if not data.get('id') and 'source' in data and 'target' in data:
            data['id'] = f"{data['source']}-{data['target']}"
        return data

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict, omitting an unset label."""
        return self.model_dump(exclude_none=True)


class GraphModel(BaseModel):
    """
    The canonical node/edge lists.

    Operations in `graph_ops` never mutate an instance; they return a new one.
    """
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def edge_ids(self) -> set[str]:
        return {e.id for e in self.edges}

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n))."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        """Get an edge by ID (O(n))."""
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def to_json_dict(self) -> dict:
        return {
            "nodes": [n.model_dump() for n in self.nodes],
            "edges": [e.to_json_dict() for e in self.edges],
        }


class DiagramData(BaseModel):
    """
    One diagram: engine, source text and (optionally) its graph.
    This is the payload of an exported snapshot file.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    engine: EngineTag
    code: str
    nodes: Optional[list[Node]] = None
    edges: Optional[list[Edge]] = None
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    def graph(self) -> GraphModel:
        return GraphModel(nodes=self.nodes or [], edges=self.edges or [])

    def to_json_dict(self) -> dict:
        data = self.model_dump(mode="json", by_alias=True, exclude={"nodes", "edges"})
        data["nodes"] = [n.model_dump() for n in self.nodes or []]
        data["edges"] = [e.to_json_dict() for e in self.edges or []]
        return data


class DiagramExport(BaseModel):
    """Versioned envelope around a `DiagramData`."""
    version: str = SNAPSHOT_VERSION
    diagram: DiagramData

    def to_json_dict(self) -> dict:
        return {"version": self.version, "diagram": self.diagram.to_json_dict()}
