"""Summarization module for LiveNotes."""

from .base import SummarizationBackend, PresentationSink
from .chatgpt_summarizer import ChatGPTSummarizer
from .dispatcher import SummarizationDispatcher

__all__ = [
    "SummarizationBackend",
    "PresentationSink",
    "ChatGPTSummarizer",
    "SummarizationDispatcher",
]
