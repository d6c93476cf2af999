import io
import json
import logging

import pytest

from diagram_sync.cli import main


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() installs a handler on the stream capsys swaps in; put the old ones back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _run(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


def test_parse_file(tmp_path, capsys):
    source = tmp_path / "flow.d2"
    source.write_text("User -> App: Request\n")

    assert _run(["parse", "--engine", "d2", "--file", str(source)]) == 0

    data = json.loads(capsys.readouterr().out)
    assert [n["id"] for n in data["nodes"]] == ["User", "App"]
    assert data["edges"][0]["label"] == "Request"


def test_parse_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("digraph G {\n  A -> B;\n}\n"))

    assert _run(["parse", "--engine", "graphviz"]) == 0

    assert len(json.loads(capsys.readouterr().out)["edges"]) == 1


def test_generate_from_graph_json(tmp_path, capsys):
    graph = tmp_path / "graph.json"
    graph.write_text(json.dumps({
        "nodes": [{"id": "A", "label": "Alpha"}, {"id": "B", "label": "Beta"}],
        "edges": [{"source": "A", "target": "B"}],
    }))

    main(["generate", "--engine", "graphviz", "--file", str(graph)])

    out = capsys.readouterr().out
    assert out.startswith("digraph G {\n")
    assert '  A [label="Alpha"];' in out
    assert out.endswith("}\n")


def test_generate_rejects_bad_graph(tmp_path, capsys):
    graph = tmp_path / "graph.json"
    graph.write_text(json.dumps({"nodes": [{"label": "no id"}]}))

    assert _run(["generate", "--engine", "d2", "--file", str(graph)]) == 1
    assert json.loads(capsys.readouterr().out)["status"] == "error"


def test_convert(tmp_path, capsys):
    source = tmp_path / "flow.mmd"
    source.write_text("flowchart LR\n  A[Start] --> B[End]\n")

    main(["convert", "--from", "mermaid", "--to", "d2", "--file", str(source)])

    assert capsys.readouterr().out == "A: Start\nB: End\nA -> B\n"


def test_export_to_file(tmp_path, capsys):
    source = tmp_path / "seq.puml"
    source.write_text("@startuml\nUser -> App: Request\n@enduml\n")
    output = tmp_path / "diagram.json"

    assert _run(["export", "--engine", "plantuml", "--file", str(source), "--output", str(output)]) == 0

    snapshot = json.loads(output.read_text())
    assert snapshot["version"] == "1.0"
    assert snapshot["diagram"]["engine"] == "plantuml"
    assert len(snapshot["diagram"]["nodes"]) == 2


def test_validate_reports_orphans(tmp_path, capsys):
    source = tmp_path / "flow.mmd"
    source.write_text("flowchart LR\n  A --> B\n  C[Lonely]\n")

    assert _run(["validate", "--engine", "mermaid", "--file", str(source)]) == 0

    data = json.loads(capsys.readouterr().out)
    assert data["summary"]["warnings"] == 1
    assert data["summary"]["valid"] is True


def test_missing_file(tmp_path, capsys):
    assert _run(["parse", "--engine", "d2", "--file", str(tmp_path / "missing.d2")]) == 1
    assert "Cannot read" in json.loads(capsys.readouterr().out)["error"]


def test_unknown_engine_rejected_by_argparse():
    assert _run(["parse", "--engine", "visio"]) == 2


def test_logs_go_to_stderr_and_keep_stdout_json(tmp_path, capsys):
    source = tmp_path / "flow.d2"
    source.write_text("A -> B\nnot a d2 line\n")

    assert _run(["--log-level", "debug", "parse", "--engine", "d2", "--file", str(source)]) == 0

    captured = capsys.readouterr()
    assert len(json.loads(captured.out)["nodes"]) == 2
    assert "Skipping unrecognized d2 line" in captured.err
    assert logging.getLogger().level == logging.DEBUG
