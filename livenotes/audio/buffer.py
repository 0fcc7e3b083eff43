"""Header-plus-latest chunk buffer for incremental transcription."""

import logging
from typing import Optional

from ..models.audio import AudioChunk, CombinedBlob

logger = logging.getLogger(__name__)


class ChunkBuffer:
    """Keeps the first chunk and the most recent chunk of a session.

    The first chunk carries the container header, so ``header + latest``
    is always decodable on its own. Older chunks are dropped, which keeps
    memory constant however long the session runs.
    """

    def __init__(self, media_type: Optional[str] = None):
        """Initialize chunk buffer.

        Args:
            media_type: Media type for combined blobs. Defaults to the header chunk's type.
        """
        self.media_type = media_type
        self.header: Optional[AudioChunk] = None
        self.latest: Optional[AudioChunk] = None
        self.chunks_received = 0

    def add_chunk(self, chunk: AudioChunk) -> CombinedBlob:
        """Record a newly arrived chunk and return the combined blob."""
        if self.header is None:
            self.header = chunk
            logger.debug(f"Stored header chunk: {len(chunk.data)} bytes, type {chunk.media_type}")
        self.latest = chunk
        self.chunks_received += 1

        blob = self.combined()
        logger.debug(f"Combined blob: {blob.chunk_count} chunk(s), {len(blob.data)} bytes")
        return blob

    def combined(self) -> Optional[CombinedBlob]:
        """Header followed by the latest chunk, or None before the first chunk."""
        if self.header is None:
            return None

        if self.latest is self.header:
            data = self.header.data
        else:
            data = self.header.data + self.latest.data

        return CombinedBlob(
            data=data,
            media_type=self.media_type or self.header.media_type,
            chunk_count=self.chunk_count,
            sequence_number=self.latest.sequence_number
        )

    @property
    def chunk_count(self) -> int:
        if self.header is None:
            return 0
        return 1 if self.latest is self.header else 2

    def get_buffer_stats(self) -> dict:
        """Get buffer statistics."""
        buffered_bytes = 0
        if self.header is not None:
            buffered_bytes = len(self.header.data)
            if self.latest is not self.header:
                buffered_bytes += len(self.latest.data)

        return {
            "chunk_count": self.chunk_count,
            "buffered_bytes": buffered_bytes,
            "chunks_received": self.chunks_received,
            "header_sequence": self.header.sequence_number if self.header else None,
            "latest_sequence": self.latest.sequence_number if self.latest else None,
        }
