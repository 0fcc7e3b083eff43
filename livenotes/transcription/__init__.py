"""Transcription module for LiveNotes."""

from .base import AbstractTranscriptionBackend
from ..models.transcription import TranscriptionResult, TranscriptState
from .merge import TranscriptMerger
from .whisper_backend import WhisperTranscriptionBackend
from .google_backend import GoogleSpeechBackend

__all__ = [
    "AbstractTranscriptionBackend",
    "TranscriptionResult",
    "TranscriptState",
    "TranscriptMerger",
    "WhisperTranscriptionBackend",
    "GoogleSpeechBackend",
]
