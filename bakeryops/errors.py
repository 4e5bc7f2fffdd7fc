"""Error taxonomy shared by services and routes."""
from __future__ import annotations


class BakeryOpsError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(BakeryOpsError, ValueError):
    """Input rejected before any call reaches the store."""


class PersistenceError(BakeryOpsError):
    """The store failed (unreachable, constraint violation, ...). Safe to retry."""


class NotFoundError(PersistenceError):
    def __init__(self, table: str, doc_id: str):
        super().__init__(f"{table} {doc_id} not found")
        self.table = table
        self.doc_id = doc_id


class PlaybackError(BakeryOpsError):
    """The alert sound could not start (e.g. autoplay blocked)."""
