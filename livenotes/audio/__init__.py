"""Audio capture and buffering module."""

from .devices import (
    DeviceUnavailable,
    MediaTrack,
    MediaStream,
    CaptureDeviceAdapter,
    PyAudioDeviceLayer,
)
from .recorder import MediaRecorder
from .buffer import ChunkBuffer

__all__ = [
    'DeviceUnavailable',
    'MediaTrack',
    'MediaStream',
    'CaptureDeviceAdapter',
    'PyAudioDeviceLayer',
    'MediaRecorder',
    'ChunkBuffer'
]
