"""Terminal presentation for LiveNotes."""

from .summary_sink import ConsoleSummarySink

__all__ = ["ConsoleSummarySink"]
