"""Abstract base classes for transcription backends."""

from abc import ABC, abstractmethod
import logging

from ..models.audio import CombinedBlob
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    def __init__(self, language: str = "en-US"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    async def transcribe(self, blob: CombinedBlob) -> TranscriptionResult:
        """Transcribe a combined audio blob and return result.

        Args:
            blob: Self-contained audio file with its media type

        Returns:
            TranscriptionResult with transcription and metadata
        """
        pass

    @abstractmethod
    def initialize(self) -> bool:
        """Initialize backend resources and verify configuration.

        Returns:
            True if initialization successful, False otherwise
        """
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up backend resources."""
        pass
