"""Transcription and summary data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class TranscriptionResult:
    """Result of a transcription operation."""
    text: str
    confidence: float
    processing_time: float
    timestamp: datetime
    service: str
    language: str = "en-US"
    sequence_number: Optional[int] = None  # Latest chunk contained in the transcribed blob


@dataclass
class TranscriptState:
    """Running reconstruction of the spoken text for one session.

    ``accumulated_text`` always starts with ``anchor_text``, the text of the
    first transcription that completed. ``iteration`` counts merges.
    """
    anchor_text: str = ""
    accumulated_text: str = ""
    iteration: int = 0


@dataclass
class SummaryState:
    """Latest summary of the accumulated transcript."""
    latest_summary: str = ""
    applied_sequence: int = -1  # Only consulted when stale summaries are discarded
