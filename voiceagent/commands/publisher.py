"""Action publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.events import ActionEvent

logger = logging.getLogger(__name__)


class ActionPublisher:
    """Publishes dispatched actions using pubsub.pub."""

    def __init__(self, topic: str = "agent.action"):
        """Initialize action publisher.

        Args:
            topic: Pub/sub topic name for action events
        """
        self.topic = topic
        logger.info(f"ActionPublisher initialized with topic: {topic}")

    def publish_action_event(self, event: ActionEvent) -> None:
        """Publish an action event to the pub/sub topic."""
        pub.sendMessage(self.topic, event=event)
        logger.debug(f"Published action event: {event.action.value}")
