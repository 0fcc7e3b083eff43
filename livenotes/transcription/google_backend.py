"""Google Speech-to-Text transcription backend."""

import time
import asyncio
import logging
import functools
from datetime import datetime
from typing import Optional

from .base import AbstractTranscriptionBackend
from ..models.audio import CombinedBlob
from ..models.transcription import TranscriptionResult

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for transcription."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 channels: int = 1,
                 language: str = "en-US",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 request_timeout: float = 30.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of the recorded PCM
            channels: Channel count of the recorded PCM
            language: Language code (e.g., 'en-US', 'es-ES')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            request_timeout: Per-request timeout in seconds
        """
        super().__init__(language)
        self.credentials_path = credentials_path
        if not self.credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.request_timeout = request_timeout
        self.client = None
        self.project_id = None
        self.service_name = "Google Speech-to-Text"
        self.config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            audio_channel_count=channels,
            language_code=self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )

    def initialize(self) -> bool:
        """Initialize Google Speech client and verify credentials."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)

        # CRASH if credentials are invalid
        self.client = speech.SpeechClient(credentials=credentials)

        self.project_id = credentials.project_id
        logger.info(f"Using Google Cloud project: {self.project_id}")

        logger.info("Google Speech-to-Text backend initialized successfully")
        return True

    async def transcribe(self, blob: CombinedBlob) -> TranscriptionResult:
        """Transcribe a blob using Google Speech-to-Text."""
        if self.client is None:
            raise RuntimeError("Google Speech backend used before initialize()")

        start_time = time.time()
        logger.debug(f"Blob {blob.sequence_number}: {len(blob.data)} bytes; Language: {self.language}; "
                     f"Enhanced model: {self.use_enhanced}")

        audio = speech.RecognitionAudio(content=blob.data)
        recognize = functools.partial(self.client.recognize, config=self.config, audio=audio,
                                      timeout=self.request_timeout)
        try:
            # The client is synchronous; keep the event loop free while it runs
            response = await asyncio.get_running_loop().run_in_executor(None, recognize)
        except gax_exceptions.DeadlineExceeded as e:
            logger.error("Google STT recognize deadline exceeded for blob %s", blob.sequence_number)
            raise RuntimeError(f"Google Speech recognize timeout (blob={blob.sequence_number}): {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            logger.error("Google STT service unavailable for blob %s", blob.sequence_number)
            raise RuntimeError(f"Google Speech service unavailable (blob={blob.sequence_number}): {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            logger.error("Google STT API call error for blob %s: %s", blob.sequence_number, e)
            raise RuntimeError(f"Google Speech API error (blob={blob.sequence_number}): {e}") from e
        processing_time = time.time() - start_time

        if not response.results:
            logger.debug("--- NO SPEECH DETECTED ---")
            text, confidence = "", 0.0
        else:
            # Long audio comes back as consecutive results, one per utterance
            alternatives = [result.alternatives[0] for result in response.results if result.alternatives]
            text = " ".join(alt.transcript.strip() for alt in alternatives).strip()
            confidence = min((alt.confidence for alt in alternatives), default=0.0)
            logger.debug(f"Transcript='{text}' (conf={confidence:.2f}, processing_time: {processing_time:.3f}s)")

        return TranscriptionResult(
            text=text,
            confidence=confidence,
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            sequence_number=blob.sequence_number
        )

    async def cleanup(self) -> None:
        """Clean up Google Speech client resources."""
        pass
