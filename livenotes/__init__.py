"""LiveNotes: live transcription and summaries of microphone or desktop audio."""

__version__ = "0.1.0"
