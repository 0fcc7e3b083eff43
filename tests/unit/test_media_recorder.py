"""Unit tests for MediaRecorder and its WAV helpers."""

import asyncio
import struct

import numpy as np
import pytest

from livenotes.audio.devices import MediaStream
from livenotes.audio.recorder import MediaRecorder, WAV_MEDIA_TYPE, mix_tracks, wav_header
from livenotes.models.audio import RecorderState

from conftest import FakeTrack


@pytest.mark.unit
class TestWavHelpers:
    """Test cases for header and mixing helpers."""

    def test_wav_header_layout(self):
        header = wav_header(16000, 1)

        assert len(header) == 44
        assert header[:4] == b"RIFF"
        assert header[8:12] == b"WAVE"
        assert header[36:40] == b"data"
        fmt_size, audio_format, channels, rate, byte_rate, block_align, bits = \
            struct.unpack("<IHHIIHH", header[16:36])
        assert (fmt_size, audio_format, channels, rate) == (16, 1, 1, 16000)
        assert byte_rate == 32000
        assert block_align == 2
        assert bits == 16

    def test_mix_single_buffer_is_unchanged(self, sample_pcm):
        assert mix_tracks([sample_pcm]) == sample_pcm

    def test_mix_averages_and_pads(self):
        a = np.array([100, 200, 300], dtype=np.int16).tobytes()
        b = np.array([300, 400], dtype=np.int16).tobytes()

        mixed = np.frombuffer(mix_tracks([a, b]), dtype=np.int16)

        assert mixed.tolist() == [200, 300, 150]

    def test_mix_empty(self):
        assert mix_tracks([]) == b""
        assert mix_tracks([b"", b""]) == b""


@pytest.mark.unit
class TestMediaRecorder:
    """Test cases for MediaRecorder class."""

    def test_requires_audio_track(self):
        with pytest.raises(ValueError):
            MediaRecorder(MediaStream([FakeTrack(kind="video")]))

    def test_initial_state(self):
        recorder = MediaRecorder(MediaStream([FakeTrack(sample_rate=48000, channels=2)]))

        assert recorder.state == RecorderState.INACTIVE
        assert recorder.media_type == WAV_MEDIA_TYPE
        assert recorder.sample_rate == 48000
        assert recorder.channels == 2

    def test_emits_header_then_raw_chunks(self):
        track = FakeTrack(frames=[b"\x01\x00" * 4, b"\x02\x00" * 4, b"\x03\x00" * 4])
        recorder = MediaRecorder(MediaStream([track]))
        chunks = []
        recorder.on_data = chunks.append

        async def scenario():
            recorder.start(10)
            await asyncio.sleep(0.2)
            recorder.stop()

        asyncio.run(scenario())

        assert len(chunks) == 3
        assert chunks[0].data == wav_header(16000, 1) + b"\x01\x00" * 4
        assert chunks[1].data == b"\x02\x00" * 4
        assert [c.sequence_number for c in chunks] == [0, 1, 2]
        assert all(c.media_type == WAV_MEDIA_TYPE for c in chunks)

    def test_invalid_interval(self):
        recorder = MediaRecorder(MediaStream([FakeTrack()]))

        async def scenario():
            with pytest.raises(ValueError):
                recorder.start(0)

        asyncio.run(scenario())
        assert recorder.state == RecorderState.INACTIVE

    def test_start_while_recording(self):
        recorder = MediaRecorder(MediaStream([FakeTrack()]))

        async def scenario():
            recorder.start(1000)
            with pytest.raises(RuntimeError):
                recorder.start(1000)
            recorder.stop()

        asyncio.run(scenario())

    def test_stop_is_idempotent_and_halts_emission(self):
        track = FakeTrack(frames=[b"\x01\x00"] * 50)
        recorder = MediaRecorder(MediaStream([track]))
        chunks = []
        recorder.on_data = chunks.append

        async def scenario():
            recorder.start(10)
            await asyncio.sleep(0.05)
            recorder.stop()
            recorder.stop()
            emitted = len(chunks)
            await asyncio.sleep(0.05)
            return emitted

        emitted = asyncio.run(scenario())

        assert recorder.state == RecorderState.INACTIVE
        assert len(chunks) == emitted

    def test_track_ending_during_read_stops_without_emitting(self):
        track = FakeTrack(frames=[b"\x01\x00" * 4])
        recorder = MediaRecorder(MediaStream([track]))
        chunks = []
        recorder.on_data = chunks.append
        track.add_ended_listener(recorder.stop)

        original_read = track.read_available

        def read_then_end():
            data = original_read()
            track.end()
            return data

        track.read_available = read_then_end

        async def scenario():
            recorder.start(10)
            await asyncio.sleep(0.1)

        asyncio.run(scenario())

        assert chunks == []
        assert recorder.state == RecorderState.INACTIVE

    def test_callback_errors_do_not_stop_recording(self):
        track = FakeTrack(frames=[b"\x01\x00", b"\x02\x00"])
        recorder = MediaRecorder(MediaStream([track]))
        seen = []

        def flaky(chunk):
            seen.append(chunk.sequence_number)
            if chunk.sequence_number == 0:
                raise RuntimeError("consumer bug")

        recorder.on_data = flaky

        async def scenario():
            recorder.start(10)
            await asyncio.sleep(0.1)
            recorder.stop()

        asyncio.run(scenario())

        assert seen == [0, 1]

    def test_ended_tracks_are_skipped(self):
        live = FakeTrack(frames=[b"\x01\x00"])
        ended = FakeTrack(frames=[b"\x09\x00"])
        ended.ready_state = "ended"
        recorder = MediaRecorder(MediaStream([live, ended]))
        chunks = []
        recorder.on_data = chunks.append

        async def scenario():
            recorder.start(10)
            await asyncio.sleep(0.1)
            recorder.stop()

        asyncio.run(scenario())

        assert len(chunks) == 1
        assert chunks[0].data.endswith(b"\x01\x00")

    def test_read_failure_ends_track_and_stops(self):
        track = FakeTrack(frames=[b"\x01\x00"])

        def vanished():
            raise OSError(-9999, "Unanticipated host error")

        track.read_available = vanished
        recorder = MediaRecorder(MediaStream([track]))
        chunks = []
        stopped = []
        recorder.on_data = chunks.append
        recorder.on_stop = lambda: stopped.append(True)

        async def scenario():
            recorder.start(10)
            await asyncio.sleep(0.1)

        asyncio.run(scenario())

        assert track.ready_state == "ended"
        assert recorder.state == RecorderState.INACTIVE
        assert stopped == [True]
        assert chunks == []

    def test_read_failure_on_one_track_keeps_others_recording(self):
        healthy = FakeTrack(frames=[b"\x01\x00", b"\x02\x00"])
        broken = FakeTrack()

        def vanished():
            raise OSError("device removed")

        broken.read_available = vanished
        recorder = MediaRecorder(MediaStream([healthy, broken]))
        chunks = []
        recorder.on_data = chunks.append

        async def scenario():
            recorder.start(10)
            await asyncio.sleep(0.1)
            state = recorder.state
            recorder.stop()
            return state

        state = asyncio.run(scenario())

        assert state == RecorderState.RECORDING
        assert broken.ready_state == "ended"
        assert len(chunks) == 2
        assert chunks[1].data == b"\x02\x00"

    def test_mismatched_track_is_drained_and_discarded(self):
        primary = FakeTrack(frames=[b"\x01\x00"], sample_rate=16000)
        other = FakeTrack(frames=[b"\x09\x00", b"\x09\x00", b"\x09\x00"], sample_rate=48000)
        recorder = MediaRecorder(MediaStream([primary, other]))
        chunks = []
        recorder.on_data = chunks.append

        async def scenario():
            recorder.start(10)
            await asyncio.sleep(0.1)
            recorder.stop()

        asyncio.run(scenario())

        assert other.frames == []
        assert len(chunks) == 1
        assert b"\x09\x00" not in chunks[0].data

    def test_stop_callback_fires_once(self):
        recorder = MediaRecorder(MediaStream([FakeTrack()]))
        stopped = []
        recorder.on_stop = lambda: stopped.append(True)

        async def scenario():
            recorder.start(1000)
            recorder.stop()
            recorder.stop()

        asyncio.run(scenario())

        assert stopped == [True]
