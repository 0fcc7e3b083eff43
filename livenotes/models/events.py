"""Event models for pub/sub session notifications."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Any, Dict

from .audio import CaptureSource


@dataclass
class SessionEvent:
    """Session lifecycle event."""
    session_id: str
    source: CaptureSource
    event_type: str  # "started" or "stopped"
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TranscriptEvent:
    """Published after every completed transcript merge."""
    session_id: str
    source: CaptureSource
    accumulated_text: str
    iteration: int
    sequence_number: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class SummaryEvent:
    """Published after every applied summary."""
    session_id: str
    source: CaptureSource
    summary: str
    sequence_number: int
    timestamp: datetime = field(default_factory=datetime.now)
