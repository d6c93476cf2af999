import json
import random

import pytest
from fastapi.testclient import TestClient

from diagram_sync.api import app, get_controller
from diagram_sync.controller import SyncController


@pytest.fixture
def controller():
    controller = SyncController(rng=random.Random(3))
    app.dependency_overrides[get_controller] = lambda: controller
    yield controller
    app.dependency_overrides.clear()


@pytest.fixture
def client(controller):
    return TestClient(app)


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_get_diagram(client, controller):
    data = client.get("/api/diagram").json()

    assert data["engine"] == "mermaid"
    assert data["diagram"]["code"] == controller.code
    assert data["diagram"]["nodes"] == []


def test_import_then_generate(client):
    imported = client.post("/api/import").json()

    assert imported["success"] is True
    assert [n["id"] for n in imported["nodes"]] == ["U", "A", "P"]
    assert [e["id"] for e in imported["edges"]] == ["U-A", "A-P"]

    generated = client.post("/api/generate").json()
    assert generated["code"].startswith("flowchart LR\n  U[User]\n")


def test_set_engine_and_code(client, controller):
    response = client.put("/api/engine", json={"engine": "d2"})

    assert response.status_code == 200
    assert response.json()["engine"] == "d2"

    client.put("/api/code", json={"code": "Web -> Db: query"})
    edges = client.post("/api/import").json()["edges"]
    assert edges == [{"id": "Web-Db", "source": "Web", "target": "Db", "label": "query",
                      "kind": "smoothstep", "selected": False}]


def test_set_unknown_engine(client):
    response = client.put("/api/engine", json={"engine": "visio"})

    assert response.status_code == 400
    assert "visio" in response.json()["detail"]


def test_node_and_edge_endpoints(client, controller):
    client.post("/api/import")

    node = client.post("/api/nodes", json={"label": "Cache"}).json()["node"]
    assert node["label"] == "Cache"

    relabeled = client.patch(f"/api/nodes/{node['id']}", json={"label": "Redis"})
    assert relabeled.json()["node"]["label"] == "Redis"
    assert client.patch("/api/nodes/missing", json={"label": "x"}).status_code == 404

    edge = client.post("/api/edges", json={"source": "A", "target": node["id"]})
    assert edge.status_code == 200
    assert client.post("/api/edges", json={"source": "A", "target": node["id"]}).status_code == 400
    assert client.post("/api/edges", json={"source": "A", "target": "missing"}).status_code == 400


def test_changes_and_delete_selection(client):
    client.post("/api/import")

    changed = client.post("/api/changes", json={
        "nodes": [
            {"type": "position", "id": "U", "position": {"x": 1, "y": 2}},
            {"type": "select", "id": "A", "selected": True},
        ],
    }).json()
    assert changed["nodes"][0]["position"] == {"x": 1, "y": 2}

    remaining = client.post("/api/selection/delete").json()
    assert [n["id"] for n in remaining["nodes"]] == ["U", "P"]
    assert remaining["edges"] == []


def test_changes_reject_unknown_change_type(client):
    response = client.post("/api/changes", json={"nodes": [{"type": "teleport", "id": "U"}]})

    assert response.status_code == 422


def test_snapshot_download_and_upload(client, controller):
    client.post("/api/import")

    download = client.get("/api/snapshot")
    assert download.status_code == 200
    assert "attachment" in download.headers["content-disposition"]
    snapshot = download.json()
    assert snapshot["version"] == "1.0"

    client.post("/api/reset")
    assert controller.nodes == []

    upload = client.post("/api/snapshot", content=json.dumps(snapshot))
    assert upload.status_code == 200
    assert [n.id for n in controller.nodes] == ["U", "A", "P"]


def test_snapshot_upload_rejects_bad_file(client, controller):
    client.post("/api/import")
    graph = controller.graph

    response = client.post("/api/snapshot", content=b"{not json")

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Invalid diagram file format")
    assert controller.graph is graph


def test_engines_enum(client):
    assert client.get("/api/enums/engines").json() == {"engines": ["mermaid", "plantuml", "graphviz", "d2"]}


def test_validate(client):
    client.post("/api/import")

    data = client.get("/api/diagram/validate").json()

    assert data["summary"]["valid"] is True
    assert data["summary"]["errors"] == 0


def test_websocket_sends_state_then_answers_ping(client, controller):
    controller.import_code()

    with client.websocket_connect("/ws") as websocket:
        state = websocket.receive_json()
        assert state["type"] == "diagram_state"
        assert state["diagram"]["id"] == controller.diagram_id
        assert [n["id"] for n in state["diagram"]["nodes"]] == ["U", "A", "P"]

        websocket.send_text("ping")
        assert websocket.receive_json() == {"type": "pong"}
