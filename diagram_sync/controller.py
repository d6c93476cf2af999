"""
Sync Controller - owns the text view and the graph view of one diagram.

This module implements:
- Two independently editable views (source text and node/edge graph)
- Explicit one-shot transforms: Import (text -> graph) and Generate
  (graph -> text); neither runs automatically when the other view changes
- Interactive graph edits routed through `graph_ops`
- Snapshot import/export
- Change callbacks for real-time sync
"""

import logging
import random
import uuid
from enum import Enum
from typing import Callable, Mapping, Optional, Union

from . import graph_ops
from .config import DEFAULT_DIAGRAM_CODE, DEFAULT_ENGINE
from .engines import Engine, get_engine
from .models import DiagramData, Edge, EngineTag, GraphModel, Node, utc_now
from .snapshot import check_graph, deserialize_snapshot, serialize_snapshot

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    """What caused a state change; passed to `on_change` callbacks."""
    ENGINE = "engine"
    CODE = "code"
    IMPORT = "import"
    GENERATE = "generate"
    EDIT = "edit"
    RESET = "reset"
    SNAPSHOT = "snapshot"


class SyncController:
    """
    Holds the current engine, text buffer and graph of a single diagram.

    The text and the graph are never merged: Import replaces the whole graph
    with a fresh parse, Generate replaces the whole text buffer.
    """

    def __init__(
        self,
        default_code: Mapping[EngineTag, str] = DEFAULT_DIAGRAM_CODE,
        engine: Union[EngineTag, str] = DEFAULT_ENGINE,
        rng: Optional[random.Random] = None,
    ):
        self._default_code = default_code
        self._rng = rng
        self._engine: Engine = get_engine(engine)
        self._code = self._default_for(self._engine.tag)
        self._graph = GraphModel()
        self._diagram_id = str(uuid.uuid4())
        self._created_at = utc_now()
        self._updated_at = self._created_at
        self._on_change_callbacks: list[Callable[[ChangeKind], None]] = []

    # --- Properties ---

    @property
    def engine(self) -> EngineTag:
        return self._engine.tag

    @property
    def code(self) -> str:
        return self._code

    @property
    def graph(self) -> GraphModel:
        return self._graph

    @property
    def nodes(self) -> list[Node]:
        return self._graph.nodes

    @property
    def edges(self) -> list[Edge]:
        return self._graph.edges

    @property
    def diagram_id(self) -> str:
        return self._diagram_id

    # --- Change Callbacks ---

    def on_change(self, callback: Callable[[ChangeKind], None]):
        """Register a callback for state changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self, kind: ChangeKind):
        """Notify all registered callbacks of a change."""
        self._updated_at = utc_now()
        for callback in self._on_change_callbacks:
            callback(kind)

    def _set_graph(self, graph: GraphModel) -> bool:
        if graph is self._graph:
            return False
        self._graph = graph
        self._notify_change(ChangeKind.EDIT)
        return True

    def _default_for(self, tag: EngineTag) -> str:
        return self._default_code.get(tag, "")

    # --- Text view ---

    def set_engine(self, engine: Union[EngineTag, str]) -> EngineTag:
        """Switch language; the text buffer is reset to that engine's default."""
        self._engine = get_engine(engine)
        self._code = self._default_for(self._engine.tag)
        self._notify_change(ChangeKind.ENGINE)
        return self._engine.tag

    def set_code(self, code: str):
        self._code = code
        self._notify_change(ChangeKind.CODE)

    # --- Explicit transforms ---

    def import_code(self) -> GraphModel:
        """
        Parse the text buffer and replace the graph with the result.

        A blank buffer leaves the graph untouched.
        """
        if not self._code.strip():
            logger.debug("Import skipped: text buffer is empty")
            return self._graph
        graph = self._engine.parse(self._code)
        logger.info(
            "Imported %s text: %d nodes, %d edges",
            self._engine.tag.value, len(graph.nodes), len(graph.edges)
        )
        self._graph = graph
        self._notify_change(ChangeKind.IMPORT)
        return graph

    def generate_code(self) -> str:
        """
        Generate text from the graph and replace the text buffer with it.

        An empty graph leaves the buffer untouched.
        """
        if not self._graph.nodes:
            logger.debug("Generate skipped: graph has no nodes")
            return self._code
        self._code = self._engine.generate(self._graph)
        logger.info("Generated %s text from %d nodes", self._engine.tag.value, len(self._graph.nodes))
        self._notify_change(ChangeKind.GENERATE)
        return self._code

    # --- Graph view ---

    def add_node(self, label: Optional[str] = None) -> Node:
        graph, node = graph_ops.add_node(self._graph, label, rng=self._rng)
        self._set_graph(graph)
        return node

    def connect(self, source: str, target: str, label: Optional[str] = None) -> Optional[Edge]:
        """Connect two nodes; returns None (and changes nothing) if that is not possible."""
        graph, edge = graph_ops.connect(self._graph, source, target, label)
        self._set_graph(graph)
        return edge

    def relabel(self, node_id: str, label: str) -> Optional[Node]:
        if not self._set_graph(graph_ops.relabel(self._graph, node_id, label)):
            return None
        return self._graph.get_node(node_id)

    def delete_selected(self) -> GraphModel:
        self._set_graph(graph_ops.delete_selected(self._graph))
        return self._graph

    def apply_changes(self, changes: graph_ops.ChangeSet) -> GraphModel:
        self._set_graph(graph_ops.apply_change_set(self._graph, changes))
        return self._graph

    # --- Diagram lifecycle ---

    def reset(self):
        """Start a fresh diagram with the current engine's default text."""
        self._code = self._default_for(self._engine.tag)
        self._graph = GraphModel()
        self._diagram_id = str(uuid.uuid4())
        self._created_at = utc_now()
        self._notify_change(ChangeKind.RESET)

    def to_diagram(self) -> DiagramData:
        return DiagramData(
            id=self._diagram_id,
            engine=self._engine.tag,
            code=self._code,
            nodes=list(self._graph.nodes),
            edges=list(self._graph.edges),
            created_at=self._created_at,
            updated_at=self._updated_at,
        )

    def export_snapshot(self) -> str:
        """Serialize the whole state as a snapshot file body."""
        return serialize_snapshot(self.to_diagram())

    def import_snapshot(self, text: str | bytes) -> DiagramData:
        """
        Replace the state with a snapshot file's contents.

        Raises:
            InvalidFormat: the file is rejected and the state is left as it was
        """
        diagram = deserialize_snapshot(text)
        engine = get_engine(diagram.engine)

        # A file without nodes/edges keeps the current ones
        nodes = diagram.nodes if diagram.nodes is not None else self._graph.nodes
        edges = diagram.edges if diagram.edges is not None else self._graph.edges
        if diagram.nodes is not None:
            # Current edges may point at nodes the file does not have
            edges = graph_ops.drop_dangling(edges, {n.id for n in nodes})
        graph = GraphModel(nodes=nodes, edges=edges)
        if diagram.nodes is None:
            check_graph(graph)

        self._engine = engine
        self._code = diagram.code
        self._graph = graph
        self._diagram_id = diagram.id
        self._created_at = diagram.created_at
        logger.info("Imported snapshot %s (%s)", diagram.id, engine.tag.value)
        self._notify_change(ChangeKind.SNAPSHOT)
        return diagram

    def get_state(self) -> dict:
        """Get the full current state for API responses."""
        return {
            "diagram": self.to_diagram().to_json_dict(),
            "engine": self._engine.tag.value,
        }


# Global instance for the application
sync_controller = SyncController()
