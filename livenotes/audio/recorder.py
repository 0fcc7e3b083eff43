"""Media recorder that turns a stream's audio tracks into timed WAV chunks."""

import time
import struct
import asyncio
import logging
from typing import Callable, List, Optional

import numpy as np

from ..models.audio import AudioChunk, RecorderState
from .devices import MediaStream

logger = logging.getLogger(__name__)

WAV_MEDIA_TYPE = "audio/wav"

# RIFF and data sizes are unknown while streaming
STREAMING_SIZE = 0xFFFFFFFF


def wav_header(sample_rate: int, channels: int, bits_per_sample: int = 16) -> bytes:
    """Build a streaming WAV header for 16-bit PCM."""
    byte_rate = sample_rate * channels * bits_per_sample // 8
    block_align = channels * bits_per_sample // 8
    return (
        b"RIFF" + struct.pack("<I", STREAMING_SIZE) + b"WAVE"
        + b"fmt " + struct.pack("<IHHIIHH", 16, 1, channels, sample_rate,
                                byte_rate, block_align, bits_per_sample)
        + b"data" + struct.pack("<I", STREAMING_SIZE)
    )


def mix_tracks(buffers: List[bytes]) -> bytes:
    """Average several 16-bit PCM buffers into one, zero-padding shorter ones."""
    arrays = [np.frombuffer(buf[:len(buf) - len(buf) % 2], dtype=np.int16)
              for buf in buffers if len(buf) >= 2]
    if not arrays:
        return b""
    if len(arrays) == 1:
        return arrays[0].tobytes()

    length = max(len(a) for a in arrays)
    mixed = np.zeros(length, dtype=np.int32)
    for a in arrays:
        mixed[:len(a)] += a
    mixed //= len(arrays)
    return mixed.astype(np.int16).tobytes()


class MediaRecorder:
    """Periodically drains a stream's audio tracks and emits encoded chunks.

    The first chunk starts with a WAV header, later chunks are raw PCM, so
    the first chunk followed by any later chunk decodes as one WAV file.
    """

    def __init__(self, stream: MediaStream, media_type: str = WAV_MEDIA_TYPE):
        """Initialize recorder.

        Args:
            stream: Stream whose audio tracks are recorded
            media_type: Media type declared on every chunk
        """
        tracks = stream.get_audio_tracks()
        if not tracks:
            raise ValueError("Stream has no audio tracks to record")

        self.stream = stream
        self.media_type = media_type
        self.sample_rate = tracks[0].sample_rate
        self.channels = tracks[0].channels
        self.state = RecorderState.INACTIVE
        self.interval_ms: Optional[int] = None
        self.on_data: Optional[Callable[[AudioChunk], None]] = None
        self.on_stop: Optional[Callable[[], None]] = None

        self.total_chunks = 0
        self._header_sent = False
        self._task: Optional[asyncio.Task] = None

    def start(self, interval_ms: int) -> None:
        """Start emitting a chunk every ``interval_ms`` milliseconds."""
        if self.state != RecorderState.INACTIVE:
            raise RuntimeError(f"Recorder cannot start while {self.state.value}")
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        self.interval_ms = interval_ms
        self.state = RecorderState.RECORDING
        self._task = asyncio.get_running_loop().create_task(self._record_continuously())
        logger.info(f"Recorder started: {self.sample_rate}Hz, {self.channels} channel(s), "
                    f"chunk every {interval_ms}ms")

    def stop(self) -> None:
        """Stop emitting chunks. Pending audio is discarded."""
        if self.state == RecorderState.INACTIVE:
            return
        self.state = RecorderState.INACTIVE
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None
        logger.info(f"Recorder stopped. Total chunks: {self.total_chunks}")

        if self.on_stop:
            try:
                self.on_stop()
            except Exception as e:
                logger.error(f"Unhandled exception in stop callback: {e}", exc_info=True)

    async def _record_continuously(self) -> None:
        interval = self.interval_ms / 1000.0
        while self.state == RecorderState.RECORDING:
            await asyncio.sleep(interval)
            if self.state != RecorderState.RECORDING:
                break

            pcm = self._read_tracks()
            # Reading may have ended a track and stopped us
            if self.state != RecorderState.RECORDING:
                break
            if not any(track.ready_state == "live" for track in self.stream.get_audio_tracks()):
                logger.warning("All audio tracks have ended; stopping recorder")
                self.stop()
                break
            if not pcm:
                logger.debug("No audio captured during interval")
                continue
            self._emit(pcm)

    def _read_tracks(self) -> bytes:
        buffers = []
        for track in self.stream.get_audio_tracks():
            if track.ready_state != "live":
                continue
            try:
                data = track.read_available()
            except Exception as e:
                # A device that vanished mid-read is treated as ended
                logger.error(f"Reading track '{track.label}' failed: {e}", exc_info=True)
                track.mark_ended()
                continue
            if track.sample_rate != self.sample_rate or track.channels != self.channels:
                logger.warning(f"Discarding audio from track '{track.label}' with mismatched format")
                continue
            buffers.append(data)
        return mix_tracks(buffers)

    def _emit(self, pcm: bytes) -> None:
        data = pcm
        if not self._header_sent:
            data = wav_header(self.sample_rate, self.channels) + pcm
            self._header_sent = True

        chunk = AudioChunk(
            data=data,
            media_type=self.media_type,
            sequence_number=self.total_chunks,
            timestamp=time.time()
        )
        self.total_chunks += 1

        if self.on_data:
            try:
                self.on_data(chunk)
            except Exception as e:
                logger.error(f"Unhandled exception in data callback for chunk "
                             f"{chunk.sequence_number}: {e}", exc_info=True)
