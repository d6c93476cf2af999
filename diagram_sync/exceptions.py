"""
Common exceptions for diagram-sync.

Unrecognized diagram text is never an error; these cover the structural
failures a caller has to handle.
"""


class DiagramSyncError(Exception):
    """Base exception for all diagram-sync errors."""
    pass


class UnsupportedEngine(DiagramSyncError, ValueError):
    """Raised when an engine tag has no parser/generator pair."""

    def __init__(self, engine):
        self.engine = engine
        super().__init__(f"Unsupported diagram engine: {engine!r}")


class InvalidFormat(DiagramSyncError, ValueError):
    """Raised when a snapshot file does not follow the envelope contract."""
    pass
