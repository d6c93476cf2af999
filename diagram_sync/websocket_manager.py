"""
WebSocket Manager - pushes diagram state changes to connected editors.

Message types sent to clients:
- `diagram_state`: full state, sent once right after a client connects
- `diagram_updated`: the diagram id, engine and the change kinds since the
  last broadcast; clients re-fetch GET /api/diagram when they need the data
"""
import asyncio
import json
import logging
from typing import Iterable, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketManager:
    """Set of editor connections; a socket whose send fails is dropped."""

    def __init__(self):
        self._editors: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._editors)

    async def connect(self, websocket: WebSocket, state: dict):
        """Accept an editor and send it the current state."""
        await websocket.accept()
        await websocket.send_text(json.dumps({"type": "diagram_state", **state}))
        async with self._lock:
            self._editors.add(websocket)
        logger.info("Editor connected (%d open)", len(self._editors))

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            self._editors.discard(websocket)
        logger.info("Editor disconnected (%d open)", len(self._editors))

    async def notify_diagram_updated(self, diagram_id: str, engine: str, changes: Iterable[str]):
        """Broadcast which kinds of change happened to a diagram."""
        if not self._editors:
            return
        message = json.dumps({
            "type": "diagram_updated",
            "diagram_id": diagram_id,
            "engine": engine,
            "changes": list(changes),
        })

        async with self._lock:
            dropped = set()
            for websocket in self._editors:
                try:
                    await websocket.send_text(message)
                except Exception as e:
                    logger.debug("Dropping editor after failed send: %s", e)
                    dropped.add(websocket)
            self._editors -= dropped


# Global instance
ws_manager = WebSocketManager()
