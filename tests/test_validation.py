from diagram_sync import Edge, GraphModel, IssueSeverity, Node, validate_graph
from diagram_sync.validation import has_errors, validation_summary


def test_empty_graph_is_info_only():
    issues = validate_graph(GraphModel())

    assert [i.severity for i in issues] == [IssueSeverity.INFO]
    assert validation_summary(issues)["valid"] is True


def test_dangling_edge_is_error():
    graph = GraphModel(nodes=[Node(id="A", label="A")], edges=[Edge(source="A", target="B")])

    issues = validate_graph(graph)

    assert has_errors(issues)
    assert issues[0].to_dict() == {
        "type": "error",
        "message": "Edge references non-existent target node: B",
        "edge_id": "A-B",
    }


def test_warnings():
    graph = GraphModel(
        nodes=[Node(id="A", label="A"), Node(id="B", label=" "), Node(id="C", label="C")],
        edges=[Edge(source="A", target="A"), Edge(source="A", target="B"), Edge(source="A", target="B")],
    )

    issues = validate_graph(graph)
    messages = [i.message for i in issues]

    assert not has_errors(issues)
    assert any("Duplicate edge id A-B" in m for m in messages)
    assert any("Orphan nodes" in m and "C (C)" in m for m in messages)
    assert any("empty label" in m for m in messages)
    assert any("Self-referencing" in m for m in messages)
    assert validation_summary(issues)["warnings"] == 4
