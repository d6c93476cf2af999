import pytest

from diagram_sync import EngineTag, UnsupportedEngine, parse
from diagram_sync.parsers import parse_d2, parse_graphviz, parse_mermaid, parse_plantuml


def _summary(graph):
    return (
        [(n.id, n.label) for n in graph.nodes],
        [(e.id, e.source, e.target, e.label) for e in graph.edges],
    )


def test_mermaid_scenario():
    graph = parse_mermaid("flowchart LR\n  U[User] --> A[App]\n  A --> P[(PDF)]")

    nodes, edges = _summary(graph)
    assert nodes == [("U", "User"), ("A", "App"), ("P", "(PDF)")]
    assert edges == [("U-A", "U", "A", None), ("A-P", "A", "P", None)]
    assert all(e.kind == "smoothstep" for e in graph.edges)


def test_graphviz_scenario():
    graph = parse_graphviz("digraph G {\n  User -> App;\n  App -> PDF;\n}")

    nodes, edges = _summary(graph)
    assert nodes == [("User", "User"), ("App", "App"), ("PDF", "PDF")]
    assert [e[0] for e in edges] == ["User-App", "App-PDF"]


def test_d2_scenario():
    graph = parse_d2("User -> App: Request")

    nodes, edges = _summary(graph)
    assert nodes == [("User", "User"), ("App", "App")]
    assert edges == [("User-App", "User", "App", "Request")]


def test_plantuml_scenario_matches_d2():
    plantuml = parse_plantuml("@startuml\nUser -> App: Request\n@enduml")
    d2 = parse_d2("User -> App: Request")

    assert _summary(plantuml) == _summary(d2)


@pytest.mark.parametrize("engine, text", [
    (EngineTag.MERMAID, "flowchart LR\n\n   \n%% just a comment"),
    (EngineTag.GRAPHVIZ, "digraph G {\n  rankdir=LR;\n}"),
    (EngineTag.D2, "# nothing here\nsome words without arrows"),
    (EngineTag.PLANTUML, "@startuml\ntitle Empty\n@enduml"),
    (EngineTag.MERMAID, ""),
])
def test_text_without_connections_yields_empty_graph(engine, text):
    graph = parse(text, engine)

    assert graph.nodes == []
    assert graph.edges == []


def test_nodes_are_placed_on_grid_in_discovery_order():
    graph = parse_d2("A -> B\nC -> D\nA -> E")

    assert [n.id for n in graph.nodes] == ["A", "B", "C", "D", "E"]
    positions = [(n.position.x, n.position.y) for n in graph.nodes]
    assert positions == [(100, 100), (350, 100), (600, 100), (100, 250), (350, 250)]
    assert all((n.size.width, n.size.height) == (120, 60) for n in graph.nodes)


def test_parsed_ids_unique_and_edges_reference_nodes():
    graph = parse_mermaid(
        "graph TD\nA[Start] --> B\nB --> C[End]\nA --> C\nC --> A\nB[Ignored] --> A"
    )

    ids = [n.id for n in graph.nodes]
    assert len(ids) == len(set(ids))
    for edge in graph.edges:
        assert edge.source in ids
        assert edge.target in ids


def test_non_word_identifier_skips_line():
    graph = parse_mermaid("flowchart LR\nA-B --> C\nD --> E.F\nX --> Y")

    assert [n.id for n in graph.nodes] == ["X", "Y"]
    assert [e.id for e in graph.edges] == ["X-Y"]


def test_labels_kept_verbatim():
    graph = parse_mermaid("A[Hello, world!] --> B[Done.]")

    assert [n.label for n in graph.nodes] == ["Hello, world!", "Done."]


def test_mermaid_label_fixed_on_first_discovery():
    graph = parse_mermaid("A --> B\nB[Bee]")

    assert graph.get_node("B").label == "B"


def test_mermaid_standalone_node_declaration():
    graph = parse_mermaid("flowchart TD\nQ[Queue]\nQ --> W[Worker]")

    assert [(n.id, n.label) for n in graph.nodes] == [("Q", "Queue"), ("W", "Worker")]


def test_mermaid_edge_label():
    graph = parse_mermaid("A -->|yes| B;")

    assert graph.edges[0].label == "yes"


def test_mermaid_header_keyword_is_not_prefix_match():
    graph = parse_mermaid("graphite --> kiln")

    assert [n.id for n in graph.nodes] == ["graphite", "kiln"]


def test_graphviz_label_attribute_applies_before_and_after_edges():
    graph = parse_graphviz(
        'digraph G {\n'
        '  A [label="Alpha"];\n'
        '  A -> B;\n'
        '  B [label="Beta"];\n'
        '  Z [label="Never connected"];\n'
        '}'
    )

    assert [(n.id, n.label) for n in graph.nodes] == [("A", "Alpha"), ("B", "Beta")]


def test_graphviz_edge_label_and_attribute_lines():
    graph = parse_graphviz(
        'strict digraph {\n'
        '  node [shape=box];\n'
        '  A -> B [label="calls", color=red];\n'
        '}'
    )

    assert graph.edges[0].label == "calls"
    assert [n.id for n in graph.nodes] == ["A", "B"]


def test_parallel_edges_collapse_last_parsed_wins():
    graph = parse_d2("A -> B: one\nB -> C\nA -> B: two")

    assert [e.id for e in graph.edges] == ["A-B", "B-C"]
    assert graph.edges[0].label == "two"


def test_d2_node_declarations():
    graph = parse_d2("db: Database\napi -> db: query\nbox: {")

    assert [(n.id, n.label) for n in graph.nodes] == [("db", "Database"), ("api", "api")]


def test_plantuml_participants_and_reply_arrows():
    graph = parse_plantuml(
        '@startuml\n'
        'participant "Web App" as W\n'
        'actor User\n'
        'User -> W: open\n'
        'W --> User: page\n'
        '@enduml'
    )

    assert [(n.id, n.label) for n in graph.nodes] == [("W", "Web App"), ("User", "User")]
    assert [(e.id, e.label) for e in graph.edges] == [("User-W", "open"), ("W-User", "page")]


def test_parse_dispatch_by_string_tag():
    assert parse("A -> B", "d2").edges[0].id == "A-B"


def test_parse_unknown_engine():
    with pytest.raises(UnsupportedEngine):
        parse("A -> B", "excalidraw")


def test_d2_keyword_lines_are_not_nodes():
    graph = parse_d2(
        "direction: right\n"
        "title: Checkout flow\n"
        "vars: {\n"
        "cart: Cart\n"
        "cart -> pay"
    )

    assert [(n.id, n.label) for n in graph.nodes] == [("cart", "Cart"), ("pay", "pay")]
