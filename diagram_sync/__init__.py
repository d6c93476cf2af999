"""
Diagram Sync - text <-> graph conversion for small diagram languages.

Parses a pragmatic subset of mermaid, plantuml, graphviz and d2 into a
canonical node/edge graph, and generates diagram text back from an edited
graph. The SyncController keeps the two views independent and converts only
on explicit Import / Generate.
"""

from .models import (
    # Enums
    EngineTag,
    # Core models
    Position,
    Size,
    Node,
    Edge,
    GraphModel,
    # Snapshot models
    DiagramData,
    DiagramExport,
)

from .exceptions import DiagramSyncError, UnsupportedEngine, InvalidFormat
from .engines import Engine, ENGINES, get_engine, parse, generate
from .graph_ops import ChangeSet, add_node, connect, relabel, delete_selected, apply_change_set
from .controller import ChangeKind, SyncController
from .render import Renderer, RenderResult, RenderScheduler
from .snapshot import serialize_snapshot, deserialize_snapshot
from .validation import validate_graph, ValidationIssue, IssueSeverity

__all__ = [
    # Enums
    "EngineTag",
    # Models
    "Position",
    "Size",
    "Node",
    "Edge",
    "GraphModel",
    "DiagramData",
    "DiagramExport",
    # Errors
    "DiagramSyncError",
    "UnsupportedEngine",
    "InvalidFormat",
    # Engines
    "Engine",
    "ENGINES",
    "get_engine",
    "parse",
    "generate",
    # Graph operations
    "ChangeSet",
    "add_node",
    "connect",
    "relabel",
    "delete_selected",
    "apply_change_set",
    # Controller
    "SyncController",
    "ChangeKind",
    # Rendering
    "Renderer",
    "RenderResult",
    "RenderScheduler",
    # Snapshots
    "serialize_snapshot",
    "deserialize_snapshot",
    # Validation
    "validate_graph",
    "ValidationIssue",
    "IssueSeverity",
]
