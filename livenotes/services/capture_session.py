"""Capture session controller that runs one source's record-transcribe-summarize chain."""

import time
import random
import string
import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional, Set

from ..audio.buffer import ChunkBuffer
from ..audio.devices import CaptureDeviceAdapter, MediaStream
from ..audio.recorder import MediaRecorder
from ..models.audio import AudioChunk, AudioStats, CaptureSource, CombinedBlob, RecorderState, SessionState
from ..models.events import SessionEvent, SummaryEvent, TranscriptEvent
from ..models.transcription import SummaryState, TranscriptState
from ..summarization.base import PresentationSink, SummarizationBackend
from ..summarization.dispatcher import SummarizationDispatcher
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.merge import TranscriptMerger
from .publisher import SessionPublisher

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Timestamp-based session ID with a random suffix."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{timestamp}_{random_suffix}"


class CaptureSession:
    """One recording lifecycle for one capture source.

    States go IDLE -> RECORDING -> STOPPED and never back; record again with
    a new session. Every recorder chunk spawns an independent task that
    transcribes the combined blob, merges the text and requests a summary.
    Tasks are not cancelled by ``stop()`` and may still update the
    transcript and summary afterwards; ``drain()`` waits for them.
    All state is mutated on the event loop only, in completion order.
    """

    def __init__(self,
                 source: CaptureSource,
                 adapter: CaptureDeviceAdapter,
                 transcription_backend: AbstractTranscriptionBackend,
                 summarization_backend: SummarizationBackend,
                 sink: PresentationSink,
                 interval_ms: int,
                 recorder_factory: Callable[[MediaStream], MediaRecorder] = MediaRecorder,
                 media_type: Optional[str] = None,
                 discard_stale_summaries: bool = False,
                 session_id: Optional[str] = None):
        """Initialize capture session.

        Args:
            source: Microphone or desktop audio
            adapter: Device adapter that opens the source's stream
            transcription_backend: Service transcribing combined blobs
            summarization_backend: Service summarizing the transcript
            sink: Presentation sink receiving summaries
            interval_ms: Recorder data period in milliseconds
            recorder_factory: Builds a recorder for an opened stream
            media_type: Media type override for combined blobs
            discard_stale_summaries: Drop summaries of older transcript snapshots
            session_id: Identifier used in events, generated if omitted
        """
        if not isinstance(interval_ms, int) or interval_ms <= 0:
            raise ValueError(f"interval_ms must be a positive integer, got {interval_ms!r}")

        self.source = source
        self.adapter = adapter
        self.interval_ms = interval_ms
        self.recorder_factory = recorder_factory
        self.session_id = session_id or new_session_id()
        self.state = SessionState.IDLE

        # Handles owned while RECORDING
        self.stream: Optional[MediaStream] = None
        self.recorder: Optional[MediaRecorder] = None

        self.chunk_buffer = ChunkBuffer(media_type)
        self.transcript = TranscriptState()
        self.summary = SummaryState()
        self.publisher = SessionPublisher(source)
        self.merger = TranscriptMerger(transcription_backend, self.transcript)
        self.dispatcher = SummarizationDispatcher(
            summarization_backend,
            sink,
            self.summary,
            discard_stale=discard_stale_summaries,
            on_summary=self._publish_summary
        )

        self.start_time: Optional[float] = None
        self.stop_time: Optional[float] = None
        self.total_chunks = 0
        self._snapshot_counter = 0
        self._pending: Set[asyncio.Task] = set()

    async def start(self) -> None:
        """Open the device and start recording.

        Raises:
            DeviceUnavailable: The device could not be opened; the session stays IDLE
            RuntimeError: The session is not IDLE
        """
        if self.state != SessionState.IDLE:
            raise RuntimeError(f"{self.source.value} session cannot start while {self.state.value}")

        logger.info(f"Starting {self.source.value} session {self.session_id}")
        stream = await self.adapter.open(on_ended=self._on_stream_ended)

        try:
            recorder = self.recorder_factory(stream)
            recorder.on_data = self._on_data
            recorder.on_stop = self._on_recorder_stopped
            recorder.start(self.interval_ms)
        except Exception:
            for track in stream.get_tracks():
                track.stop()
            raise

        self.stream = stream
        self.recorder = recorder
        self.state = SessionState.RECORDING
        self.start_time = time.time()
        try:
            self._publish_session_event("started", interval_ms=self.interval_ms)
        except Exception as e:
            logger.warning(f"Error publishing start event: {e}")

        # The device may have ended the stream while it was being opened
        if not stream.active:
            self._shutdown("stream_ended")

    def stop(self) -> None:
        """Stop recording and release the stream. Safe to call any number of times."""
        self._shutdown("user")

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight transcription and summary tasks.

        Returns:
            True if every task finished within the timeout
        """
        if not self._pending:
            return True
        logger.info(f"Waiting for {len(self._pending)} in-flight task(s) of {self.source.value} session")
        _, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} task(s) still running after {timeout}s")
        return not pending

    async def cleanup(self) -> None:
        """Release the transcription backend. Call after drain()."""
        try:
            await self.merger.backend.cleanup()
        except Exception as e:
            logger.warning(f"Error cleaning up {self.source.value} transcription backend: {e}")

    def get_stats(self) -> AudioStats:
        """Get current session statistics."""
        duration = 0.0
        if self.start_time:
            duration = (self.stop_time or time.time()) - self.start_time
        buffer_stats = self.chunk_buffer.get_buffer_stats()

        return AudioStats(
            source=self.source,
            state=self.state,
            duration_seconds=duration,
            interval_ms=self.interval_ms,
            total_chunks=self.total_chunks,
            buffered_chunks=buffer_stats["chunk_count"],
            buffered_bytes=buffer_stats["buffered_bytes"],
            pending_tasks=len(self._pending),
        )

    def _shutdown(self, reason: str) -> None:
        if self.state != SessionState.RECORDING:
            return
        self.state = SessionState.STOPPED
        self.stop_time = time.time()

        recorder, self.recorder = self.recorder, None
        stream, self.stream = self.stream, None

        if recorder is not None and recorder.state != RecorderState.INACTIVE:
            try:
                recorder.stop()
            except Exception as e:
                logger.warning(f"Error stopping recorder: {e}")

        if stream is not None:
            for track in stream.get_tracks():
                try:
                    track.stop()
                except Exception as e:
                    logger.warning(f"Error stopping track '{track.label}': {e}")

        logger.info(f"{self.source.value} session {self.session_id} stopped ({reason}); "
                    f"{self.total_chunks} chunks, {len(self._pending)} task(s) in flight")
        try:
            self._publish_session_event("stopped", reason=reason)
        except Exception as e:
            logger.warning(f"Error publishing stop event: {e}")

    def _on_stream_ended(self) -> None:
        logger.info(f"{self.source.value} stream ended by the device")
        self._shutdown("stream_ended")

    def _on_recorder_stopped(self) -> None:
        # No-op when stop() or a stream end already shut the session down
        self._shutdown("recorder_stopped")

    def _on_data(self, chunk: AudioChunk) -> None:
        if self.state != SessionState.RECORDING:
            return

        self.total_chunks += 1
        blob = self.chunk_buffer.add_chunk(chunk)
        task = asyncio.get_running_loop().create_task(self._process_blob(blob))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _process_blob(self, blob: CombinedBlob) -> None:
        try:
            result = await self.merger.process(blob)
            if result is None:
                return

            self._snapshot_counter += 1
            sequence_number = self._snapshot_counter
            text = self.transcript.accumulated_text
            self.publisher.publish_transcript(TranscriptEvent(
                session_id=self.session_id,
                source=self.source,
                accumulated_text=text,
                iteration=self.transcript.iteration,
                sequence_number=blob.sequence_number
            ))

            await self.dispatcher.dispatch(text, sequence_number)
        except Exception as e:
            logger.error(f"Unhandled exception processing blob {blob.sequence_number}: {e}", exc_info=True)

    def _publish_summary(self, summary: str, sequence_number: int) -> None:
        self.publisher.publish_summary(SummaryEvent(
            session_id=self.session_id,
            source=self.source,
            summary=summary,
            sequence_number=sequence_number
        ))

    def _publish_session_event(self, event_type: str, **metadata) -> None:
        self.publisher.publish_session_event(SessionEvent(
            session_id=self.session_id,
            source=self.source,
            event_type=event_type,
            metadata=metadata
        ))
