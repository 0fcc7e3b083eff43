"""Forwards transcript snapshots to the summarizer and pushes summaries out."""

import logging
from typing import Callable, Optional

from ..models.transcription import SummaryState
from .base import PresentationSink, SummarizationBackend

logger = logging.getLogger(__name__)


class SummarizationDispatcher:
    """Summarizes every transcript update and hands the result to a sink.

    Completions are applied in the order they finish. By default a summary of
    an older snapshot can overwrite a newer one (last writer wins); with
    ``discard_stale`` completions older than the applied one are dropped.
    """

    def __init__(self,
                 backend: SummarizationBackend,
                 sink: PresentationSink,
                 state: SummaryState,
                 discard_stale: bool = False,
                 on_summary: Optional[Callable[[str, int], None]] = None):
        """Initialize dispatcher.

        Args:
            backend: Summarization service
            sink: Presentation sink receiving every applied summary
            state: Summary state owned by the calling session
            discard_stale: Drop completions for snapshots older than the applied one
            on_summary: Called with (summary, sequence_number) after a summary is applied
        """
        self.backend = backend
        self.sink = sink
        self.state = state
        self.discard_stale = discard_stale
        self.on_summary = on_summary
        self.failed_calls = 0

    async def dispatch(self, text: str, sequence_number: int) -> Optional[str]:
        """Summarize a transcript snapshot and publish the summary.

        Args:
            text: Full accumulated transcript
            sequence_number: Monotonic number of the snapshot

        Returns:
            The applied summary, or None if it failed or was discarded
        """
        try:
            summary = await self.backend.summarize(text)
        except Exception as e:
            self.failed_calls += 1
            logger.error(f"Summarization failed for snapshot {sequence_number}: {e}")
            return None

        if self.discard_stale and sequence_number < self.state.applied_sequence:
            logger.debug(f"Discarding stale summary {sequence_number} "
                         f"(applied {self.state.applied_sequence})")
            return None

        self.state.latest_summary = summary
        self.state.applied_sequence = max(self.state.applied_sequence, sequence_number)

        try:
            self.sink.set_content(summary)
        except Exception as e:
            logger.error(f"Presentation sink rejected summary {sequence_number}: {e}", exc_info=True)

        if self.on_summary:
            self.on_summary(summary, sequence_number)
        return summary
