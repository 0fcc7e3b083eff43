"""Incremental transcript merging.

Every blob starts with the session's first chunk, so every transcription is
expected to start with the text of the first one to complete (the anchor).
Later results contribute whatever follows the anchor. Results are applied in
completion order, which need not match submission order.
"""

import logging
from typing import Optional

from ..models.audio import CombinedBlob
from ..models.transcription import TranscriptState, TranscriptionResult
from .base import AbstractTranscriptionBackend

logger = logging.getLogger(__name__)


class TranscriptMerger:
    """Transcribes blobs and folds the results into a TranscriptState."""

    def __init__(self, backend: AbstractTranscriptionBackend, state: TranscriptState):
        """Initialize transcript merger.

        Args:
            backend: Transcription backend to call for every blob
            state: Transcript state owned by the calling session
        """
        self.backend = backend
        self.state = state
        self.failed_calls = 0

    async def process(self, blob: CombinedBlob) -> Optional[TranscriptionResult]:
        """Transcribe a blob and merge the result.

        Returns:
            The merged result, or None if the transcription failed
        """
        try:
            result = await self.backend.transcribe(blob)
        except Exception as e:
            # Skipped; the next interval carries more audio
            self.failed_calls += 1
            logger.error(f"Transcription failed for blob {blob.sequence_number}: {e}")
            return None

        self.merge(result.text)
        logger.info(f"Merged blob {blob.sequence_number} (iteration {self.state.iteration}): "
                    f"{len(self.state.accumulated_text)} chars")
        return result

    def merge(self, text: str) -> bool:
        """Fold one transcription into the state.

        Returns:
            True if new text was appended or the anchor was set
        """
        state = self.state

        if state.iteration == 0:
            state.anchor_text = text
            state.accumulated_text = text
            state.iteration = 1
            logger.debug(f"Anchor text set: '{text[:50]}'")
            return True

        state.iteration += 1
        if not text.startswith(state.anchor_text):
            logger.warning(f"Transcription does not start with the anchor text "
                           f"(iteration {state.iteration}); merging by length")

        # Results no longer than the anchor slice to nothing
        suffix = text[len(state.anchor_text):].strip()
        if not suffix:
            logger.debug(f"Nothing new past the anchor at iteration {state.iteration}")
            return False

        if state.accumulated_text:
            state.accumulated_text = f"{state.accumulated_text} {suffix}"
        else:
            state.accumulated_text = suffix
        return True
