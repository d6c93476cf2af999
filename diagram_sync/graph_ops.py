"""
Graph operations used by the interactive editor.

Every operation takes a GraphModel and returns a GraphModel; inputs are
never mutated. No-op cases return the input instance itself, so callers can
detect them with an identity check.

Deleting a node always removes the edges attached to it, keeping every
edge's source and target inside the node list.
"""

import logging
import random
import time
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .layout import random_position
from .models import Edge, GraphModel, Node, Position, Size

logger = logging.getLogger(__name__)


# --- Change-set models (deltas sent by the editing surface) ---

class PositionChange(BaseModel):
    """Node moved (`position` is absent on the final event of a drag)."""
    type: Literal["position"] = "position"
    id: str
    position: Optional[Position] = None
    dragging: bool = False


class DimensionsChange(BaseModel):
    """Node resized."""
    type: Literal["dimensions"] = "dimensions"
    id: str
    dimensions: Optional[Size] = None


class SelectChange(BaseModel):
    type: Literal["select"] = "select"
    id: str
    selected: bool


class RemoveChange(BaseModel):
    type: Literal["remove"] = "remove"
    id: str


NodeChange = Annotated[
    Union[PositionChange, DimensionsChange, SelectChange, RemoveChange],
    Field(discriminator="type"),
]
EdgeChange = Annotated[
    Union[SelectChange, RemoveChange],
    Field(discriminator="type"),
]


class ChangeSet(BaseModel):
    """A batch of node and edge deltas, applied in order."""
    nodes: list[NodeChange] = Field(default_factory=list)
    edges: list[EdgeChange] = Field(default_factory=list)


# --- Id synthesis ---

def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def _unique_id(prefix: str, taken: set[str], timestamp: Optional[int] = None) -> str:
    stamp = _timestamp_ms() if timestamp is None else timestamp
    candidate = f"{prefix}-{stamp}"
    suffix = 1
    while candidate in taken:
        candidate = f"{prefix}-{stamp}-{suffix}"
        suffix += 1
    return candidate


def drop_dangling(edges: list[Edge], node_ids: set[str]) -> list[Edge]:
    """Keep only edges whose source and target are both in `node_ids`."""
    kept = [e for e in edges if e.source in node_ids and e.target in node_ids]
    if len(kept) != len(edges):
        logger.debug("Removed %d edge(s) left without an endpoint", len(edges) - len(kept))
    return kept


# --- Operations ---

def add_node(
    model: GraphModel,
    label: Optional[str] = None,
    *,
    timestamp: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> tuple[GraphModel, Node]:
    """
    Append a new node at a random spot in the spawn band.

    Args:
        model: Current graph
        label: Node label (defaults to "Node <n+1>")
        timestamp: Millisecond timestamp for the id (defaults to now)
        rng: Random source for placement

    Returns:
        (new graph, the created node)
    """
    node = Node(
        id=_unique_id("node", model.node_ids(), timestamp),
        label=label if label is not None else f"Node {len(model.nodes) + 1}",
        position=random_position(rng),
    )
    return GraphModel(nodes=[*model.nodes, node], edges=list(model.edges)), node


def connect(
    model: GraphModel,
    source: str,
    target: str,
    label: Optional[str] = None,
    *,
    timestamp: Optional[int] = None,
) -> tuple[GraphModel, Optional[Edge]]:
    """
    Connect two existing nodes.

    Returns the unchanged model and None when either endpoint is missing or
    the same connection already exists.
    """
    node_ids = model.node_ids()
    if source not in node_ids or target not in node_ids:
        logger.debug("Ignoring connect %s -> %s: unknown endpoint", source, target)
        return model, None
    if any(e.source == source and e.target == target for e in model.edges):
        logger.debug("Ignoring connect %s -> %s: already connected", source, target)
        return model, None

    edge = Edge(
        id=_unique_id("edge", model.edge_ids(), timestamp),
        source=source,
        target=target,
        label=label,
    )
    return GraphModel(nodes=list(model.nodes), edges=[*model.edges, edge]), edge


def relabel(model: GraphModel, node_id: str, label: str) -> GraphModel:
    """Change one node's label; no-op when the id is absent."""
    if model.get_node(node_id) is None:
        return model
    nodes = [
        n.model_copy(update={"label": label}) if n.id == node_id else n
        for n in model.nodes
    ]
    return GraphModel(nodes=nodes, edges=list(model.edges))


def delete_selected(model: GraphModel) -> GraphModel:
    """Remove selected nodes and edges, plus edges attached to removed nodes."""
    nodes = [n for n in model.nodes if not n.selected]
    edges = [e for e in model.edges if not e.selected]
    return GraphModel(nodes=nodes, edges=drop_dangling(edges, {n.id for n in nodes}))


def apply_change_set(model: GraphModel, changes: ChangeSet) -> GraphModel:
    """
    Fold a batch of editor deltas into the graph.

    Unaffected elements keep their order and identity. Changes naming
    unknown ids are ignored.
    """
    nodes = {n.id: n for n in model.nodes}
    for change in changes.nodes:
        node = nodes.get(change.id)
        if node is None:
            continue
        if isinstance(change, RemoveChange):
            del nodes[change.id]
        elif isinstance(change, PositionChange):
            if change.position is not None:
                nodes[change.id] = node.model_copy(update={"position": change.position})
        elif isinstance(change, DimensionsChange):
            if change.dimensions is not None:
                nodes[change.id] = node.model_copy(update={"size": change.dimensions})
        elif isinstance(change, SelectChange):
            nodes[change.id] = node.model_copy(update={"selected": change.selected})

    # Edge ids may repeat (parallel edges), so edges are matched by id over the list
    edges = list(model.edges)
    for change in changes.edges:
        if isinstance(change, RemoveChange):
            edges = [e for e in edges if e.id != change.id]
        elif isinstance(change, SelectChange):
            edges = [
                e.model_copy(update={"selected": change.selected}) if e.id == change.id else e
                for e in edges
            ]

    return GraphModel(
        nodes=list(nodes.values()),
        edges=drop_dangling(edges, set(nodes)),
    )
