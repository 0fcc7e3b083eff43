"""Pytest configuration and fixtures for LiveNotes tests."""

import asyncio
import logging
import tempfile
from datetime import datetime
from typing import List, Optional, Union
from unittest.mock import Mock, patch

import numpy as np
import pytest

from livenotes.audio.devices import CaptureDeviceAdapter, MediaStream, MediaTrack
from livenotes.models.audio import AudioChunk, CaptureSource, RecorderState
from livenotes.models.transcription import TranscriptionResult
from livenotes.services.capture_session import CaptureSession
from livenotes.transcription.base import AbstractTranscriptionBackend


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class FakeTrack(MediaTrack):
    """Track that returns queued PCM buffers, one per read."""

    def __init__(self, kind: str = "audio", label: str = "fake", frames: Optional[List[bytes]] = None,
                 sample_rate: int = 16000, channels: int = 1):
        super().__init__(kind, label=label, sample_rate=sample_rate, channels=channels)
        self.frames = list(frames or [])
        self.stop_calls = 0

    def read_available(self) -> bytes:
        return self.frames.pop(0) if self.frames else b""

    def stop(self) -> None:
        self.stop_calls += 1
        super().stop()

    def end(self) -> None:
        """Simulate the device ending the track."""
        self.mark_ended()


class FakeDeviceLayer:
    """Device layer that hands out prepared tracks or raises."""

    def __init__(self, tracks: Optional[List[MediaTrack]] = None, error: Optional[Exception] = None):
        self.tracks = tracks if tracks is not None else [FakeTrack()]
        self.error = error
        self.requests = []

    async def open_audio_stream(self, constraints):
        self.requests.append(constraints)
        if self.error:
            raise self.error
        return MediaStream(self.tracks)


class FakeRecorder:
    """Recorder driven by the test through emit()."""

    def __init__(self, stream: MediaStream):
        self.stream = stream
        self.state = RecorderState.INACTIVE
        self.on_data = None
        self.on_stop = None
        self.interval_ms = None
        self.stop_calls = 0
        self.sequence = 0

    def start(self, interval_ms: int) -> None:
        self.interval_ms = interval_ms
        self.state = RecorderState.RECORDING

    def stop(self) -> None:
        self.stop_calls += 1
        self.state = RecorderState.INACTIVE
        if self.on_stop:
            self.on_stop()

    def emit(self, data: bytes = b"pcm", media_type: str = "audio/wav") -> None:
        chunk = AudioChunk(data=data, media_type=media_type,
                           sequence_number=self.sequence, timestamp=0.0)
        self.sequence += 1
        self.on_data(chunk)


class ScriptedTranscriber(AbstractTranscriptionBackend):
    """Returns scripted texts (or raises scripted errors) per call, with optional delays."""

    def __init__(self, responses: List[Union[str, Exception]], delays: Optional[List[float]] = None):
        super().__init__("en-US")
        self.responses = responses
        self.delays = delays or []
        self.blobs = []
        self.cleaned_up = False

    async def transcribe(self, blob):
        index = len(self.blobs)
        self.blobs.append(blob)
        if index < len(self.delays) and self.delays[index]:
            await asyncio.sleep(self.delays[index])

        response = self.responses[min(index, len(self.responses) - 1)]
        if isinstance(response, Exception):
            raise response
        return TranscriptionResult(
            text=response,
            confidence=1.0,
            processing_time=0.0,
            timestamp=datetime.now(),
            service="scripted",
            sequence_number=blob.sequence_number
        )

    def initialize(self) -> bool:
        return True

    async def cleanup(self) -> None:
        self.cleaned_up = True


class EchoSummarizer:
    """Summarizer that echoes the transcript, optionally failing or delaying calls."""

    def __init__(self, fail_calls=(), delays: Optional[List[float]] = None):
        self.fail_calls = set(fail_calls)
        self.delays = delays or []
        self.calls = []

    async def summarize(self, text: str) -> str:
        index = len(self.calls)
        self.calls.append(text)
        if index < len(self.delays) and self.delays[index]:
            await asyncio.sleep(self.delays[index])
        if index in self.fail_calls:
            raise RuntimeError("summarizer unavailable")
        return f"Summary: {text}"


class RecordingSink:
    """Presentation sink that remembers every summary it was given."""

    def __init__(self):
        self.contents = []

    def set_content(self, summary_text: str) -> None:
        self.contents.append(summary_text)


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def sample_pcm():
    """Generate 0.1s of a 440Hz sine wave as 16-bit PCM."""
    t = np.linspace(0, 0.1, 1600, False)
    wave_data = np.sin(2 * np.pi * 440 * t)
    return (wave_data * 32767).astype(np.int16).tobytes()


@pytest.fixture
def make_session():
    """Factory for capture sessions wired to fakes.

    Returns (session, parts) where parts holds the fakes for assertions.
    """
    def _make(source: CaptureSource = CaptureSource.MICROPHONE,
              responses: Optional[List[Union[str, Exception]]] = None,
              transcribe_delays: Optional[List[float]] = None,
              tracks: Optional[List[MediaTrack]] = None,
              device_error: Optional[Exception] = None,
              summarizer: Optional[EchoSummarizer] = None,
              interval_ms: int = 5000,
              recorder_factory=FakeRecorder,
              discard_stale_summaries: bool = False):
        device_layer = FakeDeviceLayer(tracks=tracks, error=device_error)
        transcriber = ScriptedTranscriber(responses or ["Hello"], transcribe_delays)
        summarizer = summarizer or EchoSummarizer()
        sink = RecordingSink()
        session = CaptureSession(
            source=source,
            adapter=CaptureDeviceAdapter(source, device_layer),
            transcription_backend=transcriber,
            summarization_backend=summarizer,
            sink=sink,
            interval_ms=interval_ms,
            recorder_factory=recorder_factory,
            discard_stale_summaries=discard_stale_summaries
        )
        parts = Mock()
        parts.device_layer = device_layer
        parts.tracks = device_layer.tracks
        parts.transcriber = transcriber
        parts.summarizer = summarizer
        parts.sink = sink
        return session, parts

    return _make


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.is_active.return_value = True
        mock_stream.stop_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None
        mock_pyaudio_instance.get_default_input_device_info.return_value = {
            'index': 0, 'name': 'Built-in Microphone', 'maxInputChannels': 1
        }
        mock_pyaudio_instance.get_device_count.return_value = 0

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
