"""Summarization backend and presentation sink protocols."""

from typing import Protocol


class SummarizationBackend(Protocol):
    """Protocol for services that condense a transcript."""

    async def summarize(self, text: str) -> str:
        """Summarize the transcript text."""
        ...


class PresentationSink(Protocol):
    """Protocol for whatever displays the latest summary."""

    def set_content(self, summary_text: str) -> None:
        """Replace the displayed content with the summary."""
        ...
