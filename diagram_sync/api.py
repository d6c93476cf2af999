"""
Diagram Sync Backend - FastAPI Application

It provides:
- REST API over the SyncController (text buffer, graph edits, Import/Generate)
- Snapshot download/upload
- WebSocket endpoint for real-time updates
- CORS configuration for local frontend development
"""
import asyncio
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from .config import API_HOST, API_PORT, CORS_ORIGINS
from .controller import ChangeKind, SyncController, sync_controller
from .exceptions import InvalidFormat, UnsupportedEngine
from .graph_ops import ChangeSet
from .models import EngineTag
from .validation import validate_graph, validation_summary
from .websocket_manager import ws_manager


def get_controller() -> SyncController:
    """Dependency returning the controller the routes operate on."""
    return sync_controller


# --- Async change notification ---
# Bridge between sync SyncController callbacks and async WebSocket broadcasts

_change_event = asyncio.Event()
_pending_changes: list[ChangeKind] = []


def on_diagram_change(kind: ChangeKind):
    """Callback for state changes - records the kind and wakes the broadcaster."""
    _pending_changes.append(kind)
    _change_event.set()


async def change_broadcaster(controller: SyncController):
    """Background task that broadcasts changes to WebSocket clients."""
    while True:
        await _change_event.wait()
        _change_event.clear()
        # Several changes may land between wakeups; report each kind once
        changes = [kind.value for kind in dict.fromkeys(_pending_changes)]
        _pending_changes.clear()
        await ws_manager.notify_diagram_updated(controller.diagram_id, controller.engine.value, changes)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    sync_controller.on_change(on_diagram_change)
    broadcaster_task = asyncio.create_task(change_broadcaster(sync_controller))

    yield

    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---

app = FastAPI(
    title="Diagram Sync API",
    description="Text <-> graph editing backend for mermaid, plantuml, graphviz and d2 diagrams",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Request models ---

class EngineRequest(BaseModel):
    engine: str


class CodeRequest(BaseModel):
    code: str


class CreateNodeRequest(BaseModel):
    label: Optional[str] = None


class RelabelRequest(BaseModel):
    label: str


class ConnectRequest(BaseModel):
    source: str
    target: str
    label: Optional[str] = None


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": ws_manager.connection_count}


# --- Diagram State ---

@app.get("/api/diagram")
async def get_diagram(controller: SyncController = Depends(get_controller)):
    """Get the current engine, text and graph."""
    return controller.get_state()


@app.put("/api/engine")
async def set_engine(request: EngineRequest, controller: SyncController = Depends(get_controller)):
    """Switch engine; the text buffer is reset to the engine's default."""
    try:
        engine = controller.set_engine(request.engine)
    except UnsupportedEngine as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"success": True, "engine": engine.value, "code": controller.code}


@app.put("/api/code")
async def set_code(request: CodeRequest, controller: SyncController = Depends(get_controller)):
    """Replace the text buffer (does not touch the graph)."""
    controller.set_code(request.code)
    return {"success": True}


@app.post("/api/reset")
async def reset_diagram(controller: SyncController = Depends(get_controller)):
    """Start a fresh diagram."""
    controller.reset()
    return {"success": True, "diagram": controller.to_diagram().to_json_dict()}


# --- Explicit transforms ---

@app.post("/api/import")
async def import_code(controller: SyncController = Depends(get_controller)):
    """Parse the text buffer into a new graph (Import / Convert)."""
    graph = controller.import_code()
    return {"success": True, **graph.to_json_dict()}


@app.post("/api/generate")
async def generate_code(controller: SyncController = Depends(get_controller)):
    """Regenerate the text buffer from the graph (Generate Code)."""
    code = controller.generate_code()
    return {"success": True, "code": code}


# --- Graph Operations ---

@app.post("/api/nodes")
async def create_node(request: CreateNodeRequest, controller: SyncController = Depends(get_controller)):
    """Add a node at a random spot."""
    node = controller.add_node(request.label)
    return {"success": True, "node": node.model_dump()}


@app.patch("/api/nodes/{node_id}")
async def relabel_node(node_id: str, request: RelabelRequest, controller: SyncController = Depends(get_controller)):
    """Change a node's label."""
    node = controller.relabel(node_id, request.label)
    if node:
        return {"success": True, "node": node.model_dump()}
    raise HTTPException(status_code=404, detail="Node not found")


@app.post("/api/edges")
async def create_edge(request: ConnectRequest, controller: SyncController = Depends(get_controller)):
    """Connect two existing nodes."""
    edge = controller.connect(request.source, request.target, request.label)
    if edge:
        return {"success": True, "edge": edge.to_json_dict()}
    raise HTTPException(
        status_code=400,
        detail=f"Cannot connect {request.source} -> {request.target}: unknown node or existing connection"
    )


@app.post("/api/changes")
async def apply_changes(changes: ChangeSet, controller: SyncController = Depends(get_controller)):
    """Apply a batch of position/dimension/selection/removal deltas."""
    graph = controller.apply_changes(changes)
    return {"success": True, **graph.to_json_dict()}


@app.post("/api/selection/delete")
async def delete_selected(controller: SyncController = Depends(get_controller)):
    """Delete selected nodes and edges (and edges attached to deleted nodes)."""
    graph = controller.delete_selected()
    return {"success": True, **graph.to_json_dict()}


# --- Snapshots ---

@app.get("/api/snapshot")
async def export_snapshot(controller: SyncController = Depends(get_controller)):
    """Download the current state as a snapshot file."""
    filename = f"diagram-{int(time.time() * 1000)}.json"
    return Response(
        content=controller.export_snapshot(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/snapshot")
async def import_snapshot(request: Request, controller: SyncController = Depends(get_controller)):
    """Replace the state with an uploaded snapshot file body."""
    body = await request.body()
    try:
        diagram = controller.import_snapshot(body)
    except InvalidFormat as e:
        raise HTTPException(status_code=400, detail=f"Invalid diagram file format: {e}")
    return {"success": True, "diagram": diagram.to_json_dict()}


# --- Enums for Frontend ---

@app.get("/api/enums/engines")
async def get_engines():
    """Get available engine tags."""
    return {"engines": [e.value for e in EngineTag]}


# --- Validation ---

@app.get("/api/diagram/validate")
async def validate_current_graph(controller: SyncController = Depends(get_controller)):
    """Validate the current graph for structural issues."""
    issues = validate_graph(controller.graph)
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    }


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, controller: SyncController = Depends(get_controller)):
    """
    WebSocket endpoint for real-time updates.

    Clients get the current state on connect, then diagram_updated events.
    """
    await ws_manager.connect(websocket, controller.get_state())

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"type": "pong"}')
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)


def run(host: str = API_HOST, port: int = API_PORT):
    import uvicorn
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run()
