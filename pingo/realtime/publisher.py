"""Session state publisher for pub/sub updates to the presentation layer."""

import logging
from typing import List

from pubsub import pub

from ..models.transcript import Utterance

logger = logging.getLogger(__name__)

TOPIC_CONNECTED = "session_connected"
TOPIC_SPEAKING = "session_speaking"
TOPIC_TRANSCRIPT = "session_transcript"


class SessionStatePublisher:
    """Publishes UI-visible session state using pubsub.pub."""

    def __init__(self, connected_topic: str = TOPIC_CONNECTED,
                 speaking_topic: str = TOPIC_SPEAKING,
                 transcript_topic: str = TOPIC_TRANSCRIPT):
        self.connected_topic = connected_topic
        self.speaking_topic = speaking_topic
        self.transcript_topic = transcript_topic

    def publish_connected(self, connected: bool) -> None:
        pub.sendMessage(self.connected_topic, connected=connected)
        logger.debug(f"Published connected={connected}")

    def publish_speaking(self, speaking: bool) -> None:
        pub.sendMessage(self.speaking_topic, speaking=speaking)
        logger.debug(f"Published speaking={speaking}")

    def publish_transcript(self, utterances: List[Utterance]) -> None:
        """Publish a snapshot of the transcript.

        Args:
            utterances: Current transcript entries, oldest first
        """
        pub.sendMessage(self.transcript_topic, utterances=utterances)
