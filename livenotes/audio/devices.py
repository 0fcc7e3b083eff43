"""Capture device adapters and the PyAudio device layer.

A device layer opens a ``MediaStream`` for a set of ``AudioConstraints``.
``CaptureDeviceAdapter`` sits in front of it and applies the per-source
policy: processing hints for the microphone, and for desktop audio the
removal of video tracks plus an end-of-stream observer.
"""

import logging
import threading
from typing import Callable, List, Optional, Protocol

import pyaudio

from ..models.audio import AudioConstraints, CaptureSource

logger = logging.getLogger(__name__)

# Substrings of device names that expose system audio as an input
LOOPBACK_NAME_HINTS = ("loopback", "stereo mix", "blackhole", "monitor")


class DeviceUnavailable(Exception):
    """Raised when permission is denied or no matching capture device exists."""


class MediaTrack:
    """A single stoppable track of a media stream."""

    def __init__(self, kind: str, label: str = "", sample_rate: int = 16000, channels: int = 1):
        self.kind = kind
        self.label = label
        self.sample_rate = sample_rate
        self.channels = channels
        self.ready_state = "live"
        self._ended_listeners: List[Callable[[], None]] = []

    def add_ended_listener(self, callback: Callable[[], None]) -> None:
        """Register a callback fired when the device ends the track."""
        self._ended_listeners.append(callback)

    def read_available(self) -> bytes:
        """Return the 16-bit PCM captured since the previous call."""
        return b""

    def stop(self) -> None:
        """Stop the track. Ended listeners are not notified."""
        if self.ready_state == "ended":
            return
        self.ready_state = "ended"
        self._release()

    def mark_ended(self) -> None:
        """Mark the track as ended by the device and notify listeners."""
        if self.ready_state == "ended":
            return
        self.ready_state = "ended"
        self._release()
        logger.info(f"Track '{self.label}' ended by the device")
        for callback in list(self._ended_listeners):
            callback()

    def _release(self) -> None:
        pass


class MediaStream:
    """A set of tracks opened together from one device request."""

    def __init__(self, tracks: Optional[List[MediaTrack]] = None):
        self._tracks = list(tracks or [])

    def get_tracks(self) -> List[MediaTrack]:
        return list(self._tracks)

    def get_audio_tracks(self) -> List[MediaTrack]:
        return [track for track in self._tracks if track.kind == "audio"]

    def get_video_tracks(self) -> List[MediaTrack]:
        return [track for track in self._tracks if track.kind == "video"]

    def remove_track(self, track: MediaTrack) -> None:
        if track in self._tracks:
            self._tracks.remove(track)

    @property
    def active(self) -> bool:
        return any(track.ready_state == "live" for track in self._tracks)


class DeviceLayer(Protocol):
    """Protocol for device layers that can open audio streams."""

    async def open_audio_stream(self, constraints: AudioConstraints) -> MediaStream:
        """Open a stream matching the constraints or raise DeviceUnavailable."""
        ...


class PyAudioTrack(MediaTrack):
    """Audio track fed by a PyAudio input stream running in callback mode."""

    def __init__(self,
                 pyaudio_instance: pyaudio.PyAudio,
                 device_info: dict,
                 sample_rate: int,
                 channels: int,
                 frames_per_buffer: int = 1024):
        super().__init__("audio", label=device_info['name'], sample_rate=sample_rate, channels=channels)

        # PyAudio's callback thread appends, the event loop drains
        self._lock = threading.Lock()
        self._pending = bytearray()

        self._stream = pyaudio_instance.open(
            format=pyaudio.paInt16,
            channels=channels,
            rate=sample_rate,
            input=True,
            input_device_index=int(device_info['index']),
            frames_per_buffer=frames_per_buffer,
            stream_callback=self._on_audio
        )
        logger.info(f"Audio stream opened on '{self.label}': {sample_rate}Hz, "
                    f"{channels} channel(s), {frames_per_buffer} frames/buffer")

    def _on_audio(self, in_data, frame_count, time_info, status):
        with self._lock:
            self._pending.extend(in_data)
        return (None, pyaudio.paContinue)

    def read_available(self) -> bytes:
        with self._lock:
            data = bytes(self._pending)
            self._pending.clear()

        # A stream that went inactive without stop() was closed by the device
        if self.ready_state == "live" and not self._stream.is_active():
            self.mark_ended()
        return data

    def _release(self) -> None:
        try:
            if self._stream.is_active():
                self._stream.stop_stream()
            self._stream.close()
        except OSError as e:
            logger.warning(f"Error closing audio stream '{self.label}': {e}")


class PyAudioDeviceLayer:
    """Device layer that opens input devices through PyAudio."""

    def __init__(self, frames_per_buffer: int = 1024):
        self.frames_per_buffer = frames_per_buffer
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    async def open_audio_stream(self, constraints: AudioConstraints) -> MediaStream:
        if self.pyaudio_instance is None:
            self.pyaudio_instance = pyaudio.PyAudio()

        if constraints.video:
            logger.debug("Video requested; PyAudio provides audio tracks only")
        hints = {
            "echo_cancellation": constraints.echo_cancellation,
            "noise_suppression": constraints.noise_suppression,
            "auto_gain_control": constraints.auto_gain_control,
        }
        requested = [name for name, enabled in hints.items() if enabled]
        if requested:
            logger.debug(f"Processing hints not supported by PyAudio, ignored: {requested}")

        device_info = self._find_device(constraints)
        channels = max(1, min(constraints.channels, int(device_info.get('maxInputChannels', 1))))

        try:
            track = PyAudioTrack(
                self.pyaudio_instance,
                device_info,
                sample_rate=constraints.sample_rate,
                channels=channels,
                frames_per_buffer=self.frames_per_buffer
            )
        except OSError as e:
            raise DeviceUnavailable(f"Could not open '{device_info['name']}': {e}") from e

        return MediaStream([track])

    def _input_devices(self) -> List[dict]:
        devices = []
        for index in range(self.pyaudio_instance.get_device_count()):
            info = self.pyaudio_instance.get_device_info_by_index(index)
            if int(info.get('maxInputChannels', 0)) > 0:
                devices.append(info)
        return devices

    def _find_device(self, constraints: AudioConstraints) -> dict:
        if constraints.device_name:
            wanted = constraints.device_name.lower()
            for info in self._input_devices():
                if wanted in info['name'].lower():
                    return info
            raise DeviceUnavailable(f"No input device matching '{constraints.device_name}'")

        if constraints.source == CaptureSource.MICROPHONE:
            try:
                return self.pyaudio_instance.get_default_input_device_info()
            except (IOError, OSError) as e:
                raise DeviceUnavailable(f"No default microphone: {e}") from e

        for info in self._input_devices():
            name = info['name'].lower()
            if any(hint in name for hint in LOOPBACK_NAME_HINTS):
                logger.info(f"Using loopback device for desktop audio: {info['name']}")
                return info
        raise DeviceUnavailable("No loopback device found for desktop audio")

    def terminate(self) -> None:
        if self.pyaudio_instance:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None


class CaptureDeviceAdapter:
    """Opens audio streams for one capture source."""

    def __init__(self,
                 source: CaptureSource,
                 device_layer: DeviceLayer,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 device_name: Optional[str] = None,
                 echo_cancellation: bool = True,
                 noise_suppression: bool = True,
                 auto_gain_control: bool = True):
        self.source = source
        self.device_layer = device_layer
        self.sample_rate = sample_rate
        self.channels = channels
        self.device_name = device_name
        self.echo_cancellation = echo_cancellation
        self.noise_suppression = noise_suppression
        self.auto_gain_control = auto_gain_control

    def build_constraints(self) -> AudioConstraints:
        if self.source == CaptureSource.MICROPHONE:
            return AudioConstraints(
                source=self.source,
                echo_cancellation=self.echo_cancellation,
                noise_suppression=self.noise_suppression,
                auto_gain_control=self.auto_gain_control,
                sample_rate=self.sample_rate,
                channels=self.channels,
                device_name=self.device_name
            )
        return AudioConstraints(
            source=self.source,
            video=True,
            sample_rate=self.sample_rate,
            channels=self.channels,
            device_name=self.device_name
        )

    async def open(self, on_ended: Optional[Callable[[], None]] = None) -> MediaStream:
        """Open a stream for this source.

        Args:
            on_ended: Called when a desktop track is ended by the device

        Returns:
            Stream holding audio tracks only

        Raises:
            DeviceUnavailable: Permission denied or no matching device
        """
        constraints = self.build_constraints()
        try:
            stream = await self.device_layer.open_audio_stream(constraints)
        except OSError as e:
            raise DeviceUnavailable(f"{self.source.value} capture unavailable: {e}") from e

        if self.source == CaptureSource.DESKTOP:
            for track in stream.get_video_tracks():
                track.stop()
                stream.remove_track(track)
            if on_ended:
                for track in stream.get_audio_tracks():
                    track.add_ended_listener(on_ended)

        if not stream.get_audio_tracks():
            for track in stream.get_tracks():
                track.stop()
            raise DeviceUnavailable(f"{self.source.value} stream has no audio track")

        logger.info(f"Opened {self.source.value} stream with "
                    f"{len(stream.get_audio_tracks())} audio track(s)")
        return stream
