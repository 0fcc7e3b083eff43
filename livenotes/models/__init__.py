"""Data models for the LiveNotes application."""

from .audio import (
    CaptureSource,
    SessionState,
    RecorderState,
    AudioConstraints,
    AudioChunk,
    CombinedBlob,
    AudioStats,
)
from .transcription import TranscriptionResult, TranscriptState, SummaryState
from .events import SessionEvent, TranscriptEvent, SummaryEvent

__all__ = [
    "CaptureSource",
    "SessionState",
    "RecorderState",
    "AudioConstraints",
    "AudioChunk",
    "CombinedBlob",
    "AudioStats",
    "TranscriptionResult",
    "TranscriptState",
    "SummaryState",
    # Pub/sub events
    "SessionEvent",
    "TranscriptEvent",
    "SummaryEvent",
]
