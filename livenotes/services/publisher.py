"""Session event publisher for pub/sub notifications."""

import logging
from pubsub import pub

from ..models.audio import CaptureSource
from ..models.events import SessionEvent, TranscriptEvent, SummaryEvent

logger = logging.getLogger(__name__)


def session_topic(source: CaptureSource) -> str:
    return f"session_{source.name.lower()}"


def transcript_topic(source: CaptureSource) -> str:
    return f"transcript_{source.name.lower()}"


def summary_topic(source: CaptureSource) -> str:
    return f"summary_{source.name.lower()}"


class SessionPublisher:
    """Publishes one capture session's events using pubsub.pub."""

    def __init__(self, source: CaptureSource):
        """Initialize session publisher.

        Args:
            source: Capture source whose topics this publisher sends on
        """
        self.source = source
        self.session_topic = session_topic(source)
        self.transcript_topic = transcript_topic(source)
        self.summary_topic = summary_topic(source)
        logger.info(f"SessionPublisher initialized for {source.value}")

    def publish_session_event(self, event: SessionEvent) -> None:
        pub.sendMessage(self.session_topic, event=event)
        logger.debug(f"Published session event: {event.event_type} ({self.source.value})")

    def publish_transcript(self, event: TranscriptEvent) -> None:
        pub.sendMessage(self.transcript_topic, event=event)
        logger.debug(f"Published transcript iteration {event.iteration} ({self.source.value})")

    def publish_summary(self, event: SummaryEvent) -> None:
        pub.sendMessage(self.summary_topic, event=event)
        logger.debug(f"Published summary {event.sequence_number} ({self.source.value})")
