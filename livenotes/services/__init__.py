"""Services layer for LiveNotes session logic."""

from .capture_session import CaptureSession
from .publisher import SessionPublisher
from .session_factory import create_session

__all__ = [
    "CaptureSession",
    "SessionPublisher",
    "create_session"
]
