"""
Snapshot serialization - the versioned JSON envelope used for file
import/export:

    {"version": "1.0", "diagram": {"id", "engine", "code", "nodes", "edges",
                                   "createdAt", "updatedAt"}}

Only (de)serialization lives here; reading and writing files is up to the
caller.
"""

import json
import logging

from pydantic import ValidationError

from .exceptions import InvalidFormat
from .models import SNAPSHOT_VERSION, DiagramData, DiagramExport, GraphModel
from .validation import IssueSeverity, validate_graph

logger = logging.getLogger(__name__)


def serialize_snapshot(diagram: DiagramData) -> str:
    """Wrap a diagram in the envelope and dump it as indented JSON."""
    envelope = DiagramExport(version=SNAPSHOT_VERSION, diagram=diagram)
    return json.dumps(envelope.to_json_dict(), indent=2)


def deserialize_snapshot(text: str | bytes) -> DiagramData:
    """
    Parse and check a snapshot file.

    Raises:
        InvalidFormat: if the text is not JSON, has no `diagram` object,
            does not match the schema, or holds a graph with dangling edges
            or duplicate node ids
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidFormat(f"Snapshot is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("diagram"), dict):
        raise InvalidFormat("Snapshot has no 'diagram' object")

    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        logger.warning("Snapshot version %r differs from %r; reading anyway", version, SNAPSHOT_VERSION)

    try:
        diagram = DiagramData.model_validate(data["diagram"])
    except ValidationError as e:
        raise InvalidFormat(f"Snapshot diagram does not match the schema: {e}") from e

    # Edges without nodes can only be checked against the graph they will join
    if diagram.nodes is not None:
        check_graph(GraphModel(nodes=diagram.nodes, edges=diagram.edges or []))

    return diagram


def check_graph(graph: GraphModel):
    """
    Raises:
        InvalidFormat: if the graph has dangling edges or duplicate node ids
    """
    errors = [
        issue for issue in validate_graph(graph)
        if issue.severity == IssueSeverity.ERROR
    ]
    if errors:
        raise InvalidFormat("Snapshot graph is inconsistent: " + "; ".join(i.message for i in errors))
