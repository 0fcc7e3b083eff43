"""Audio-related data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CaptureSource(Enum):
    """Where a capture session takes its audio from."""
    MICROPHONE = "Microphone"
    DESKTOP = "Desktop"


class SessionState(Enum):
    """Lifecycle state of a capture session."""
    IDLE = "idle"
    RECORDING = "recording"
    STOPPED = "stopped"


class RecorderState(Enum):
    """State of a media recorder."""
    INACTIVE = "inactive"
    RECORDING = "recording"
    PAUSED = "paused"


@dataclass
class AudioConstraints:
    """What a capture device adapter asks of the device layer."""
    source: CaptureSource
    video: bool = False  # Display capture must request video even when only audio is kept
    echo_cancellation: bool = False
    noise_suppression: bool = False
    auto_gain_control: bool = False
    sample_rate: int = 16000
    channels: int = 1
    device_name: Optional[str] = None


@dataclass
class AudioChunk:
    """One encoded unit of audio emitted by the recorder."""
    data: bytes
    media_type: str
    sequence_number: int
    timestamp: float  # Unix timestamp when the chunk was emitted


@dataclass
class CombinedBlob:
    """Header chunk plus latest chunk, decodable as one audio file."""
    data: bytes
    media_type: str
    chunk_count: int
    sequence_number: int  # Sequence number of the latest chunk


@dataclass
class AudioStats:
    """Capture session statistics."""
    source: CaptureSource
    state: SessionState
    duration_seconds: float
    interval_ms: int
    total_chunks: int
    buffered_chunks: int
    buffered_bytes: int
    pending_tasks: int
