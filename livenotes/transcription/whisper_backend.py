"""OpenAI Whisper transcription backend."""

import time
import logging
from datetime import datetime

import aiohttp

from .base import AbstractTranscriptionBackend
from ..models.audio import CombinedBlob
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)

# File extensions the transcription endpoint uses to detect the container
EXTENSIONS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
}


class WhisperTranscriptionBackend(AbstractTranscriptionBackend):
    """Transcribes audio blobs with OpenAI's audio transcription endpoint."""

    def __init__(self,
                 api_key: str,
                 model: str = "whisper-1",
                 language: str = "en",
                 timeout: float = 60.0):
        """Initialize Whisper backend.

        Args:
            api_key: OpenAI API key
            model: Transcription model name
            language: ISO-639-1 language hint, empty to auto-detect
            timeout: Total request timeout in seconds
        """
        super().__init__(language)
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.base_url = "https://api.openai.com/v1/audio/transcriptions"
        self.service_name = "OpenAI Whisper"

    def initialize(self) -> bool:
        if not self.api_key:
            raise ValueError("OpenAI API key is required - cannot initialize without credentials")
        logger.info(f"Whisper backend initialized with model: {self.model}")
        return True

    async def transcribe(self, blob: CombinedBlob) -> TranscriptionResult:
        """Transcribe a blob with the Whisper API.

        Raises:
            RuntimeError: If the API call fails
        """
        start_time = time.time()
        content_type = blob.media_type.split(";")[0].strip()
        filename = f"audio.{EXTENSIONS.get(content_type, 'wav')}"

        form = aiohttp.FormData()
        form.add_field("file", blob.data, filename=filename, content_type=content_type)
        form.add_field("model", self.model)
        form.add_field("response_format", "json")
        if self.language:
            form.add_field("language", self.language)

        headers = {"Authorization": f"Bearer {self.api_key}"}
        logger.debug(f"Sending blob {blob.sequence_number} to Whisper: {len(blob.data)} bytes as {filename}")

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(self.base_url, headers=headers, data=form) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise RuntimeError(f"Whisper API error: {response.status} - {error_text}")
                result = await response.json()

        processing_time = time.time() - start_time
        text = (result.get("text") or "").strip()
        logger.debug(f"Whisper returned {len(text)} chars for blob {blob.sequence_number} "
                     f"in {processing_time:.3f}s")

        return TranscriptionResult(
            text=text,
            confidence=1.0 if text else 0.0,
            processing_time=processing_time,
            timestamp=datetime.now(),
            service=self.service_name,
            language=self.language,
            sequence_number=blob.sequence_number
        )

    async def cleanup(self) -> None:
        pass
