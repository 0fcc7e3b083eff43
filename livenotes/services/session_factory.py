"""Builds capture sessions and their backends from configuration."""

import logging

from ..audio.devices import CaptureDeviceAdapter, DeviceLayer
from ..config import LiveNotesConfig
from ..models.audio import CaptureSource
from ..summarization.base import PresentationSink
from ..summarization.chatgpt_summarizer import ChatGPTSummarizer, DEFAULT_PROMPT
from ..transcription.base import AbstractTranscriptionBackend
from ..transcription.google_backend import GoogleSpeechBackend
from ..transcription.whisper_backend import WhisperTranscriptionBackend
from .capture_session import CaptureSession

logger = logging.getLogger(__name__)


def create_transcription_backend(config: LiveNotesConfig,
                                 sample_rate: int = 16000,
                                 channels: int = 1) -> AbstractTranscriptionBackend:
    """Create and initialize the configured transcription backend."""
    backend_name = config.get('transcription.backend', 'whisper')

    if backend_name == 'whisper':
        backend = WhisperTranscriptionBackend(
            api_key=config.get_openai_api_key(),
            model=config.get('transcription.model', 'whisper-1'),
            language=config.get('transcription.language', 'en'),
            timeout=config.get('transcription.timeout_seconds', 60.0)
        )
    elif backend_name == 'google':
        backend = GoogleSpeechBackend(
            credentials_path=config.get_google_credentials_path(),
            sample_rate=sample_rate,
            channels=channels,
            language=config.get('google_cloud.language', 'en-US'),
            use_enhanced=config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True)
        )
    else:
        raise ValueError(f"Unknown transcription backend: {backend_name}")

    logger.info(f"Initializing {backend_name} transcription backend...")
    if not backend.initialize():
        raise RuntimeError(f"{backend_name} transcription backend failed to initialize")
    return backend


def create_summarizer(config: LiveNotesConfig) -> ChatGPTSummarizer:
    return ChatGPTSummarizer(
        api_key=config.get_openai_api_key(),
        model=config.get('summarization.model', 'gpt-4o-mini'),
        prompt=config.get('summarization.prompt', DEFAULT_PROMPT),
        temperature=config.get('summarization.temperature', 0.3),
        max_tokens=config.get('summarization.max_tokens', 500),
        timeout=config.get('summarization.timeout_seconds', 60.0)
    )


def create_session(config: LiveNotesConfig,
                   source: CaptureSource,
                   device_layer: DeviceLayer,
                   sink: PresentationSink) -> CaptureSession:
    """Build an IDLE capture session for one source.

    Each session gets its own backends, buffer and transcript state.
    """
    settings = config.get_capture_settings(source)
    logger.info(f"{source.value} capture settings: {settings}")

    adapter = CaptureDeviceAdapter(
        source=source,
        device_layer=device_layer,
        sample_rate=settings['sample_rate'],
        channels=settings['channels'],
        device_name=settings['device_name'],
        echo_cancellation=settings['echo_cancellation'],
        noise_suppression=settings['noise_suppression'],
        auto_gain_control=settings['auto_gain_control']
    )

    return CaptureSession(
        source=source,
        adapter=adapter,
        transcription_backend=create_transcription_backend(
            config, sample_rate=settings['sample_rate'], channels=settings['channels']),
        summarization_backend=create_summarizer(config),
        sink=sink,
        interval_ms=settings['interval_ms'],
        discard_stale_summaries=config.get('summarization.discard_stale', False)
    )
