"""
Settings for diagram-sync.

Values come from environment variables with local-development defaults.
The default diagram text per engine is an immutable table handed to the
SyncController when it is constructed.
"""

import os
from types import MappingProxyType
from typing import Mapping

from .models import EngineTag


API_HOST = os.environ.get("DIAGRAM_SYNC_HOST", "127.0.0.1")
API_PORT = int(os.environ.get("DIAGRAM_SYNC_PORT", "8765"))
LOG_LEVEL = os.environ.get("DIAGRAM_SYNC_LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get(
        "DIAGRAM_SYNC_CORS_ORIGINS",
        "http://localhost:5173,http://localhost:3000,http://127.0.0.1:5173",
    ).split(",")
    if origin.strip()
]

DEFAULT_ENGINE = EngineTag.MERMAID

DEFAULT_DIAGRAM_CODE: Mapping[EngineTag, str] = MappingProxyType({
    EngineTag.MERMAID: (
        "flowchart LR\n"
        "  U[User] --> A[App]\n"
        "  A --> P[(PDF)]"
    ),
    EngineTag.PLANTUML: (
        "@startuml\n"
        "User -> App: Request\n"
        "App -> PDF: Generate\n"
        "PDF --> App: Document\n"
        "App --> User: Response\n"
        "@enduml"
    ),
    EngineTag.GRAPHVIZ: (
        "digraph G {\n"
        "  User -> App;\n"
        "  App -> PDF;\n"
        "}"
    ),
    EngineTag.D2: (
        "User -> App: Request\n"
        "App -> PDF: Generate"
    ),
})

# Quiet period before a text edit is sent to a renderer (seconds)
DEFAULT_RENDER_DELAY = 0.3
RENDER_DELAYS: Mapping[EngineTag, float] = MappingProxyType({
    EngineTag.MERMAID: DEFAULT_RENDER_DELAY,
    EngineTag.GRAPHVIZ: DEFAULT_RENDER_DELAY,
    EngineTag.D2: DEFAULT_RENDER_DELAY,
    EngineTag.PLANTUML: 0.5,  # remote renderer
})
