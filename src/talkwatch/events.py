"""Event sink collecting notification requests in memory."""

import logging
from typing import Any, Dict, List

from talkwatch.models import EventType, NotificationEvent, User
from talkwatch.titles import Title

logger = logging.getLogger(__name__)


class InMemoryEventSink:
    """Keeps emitted notification events in emission order."""

    def __init__(self) -> None:
        self.events: List[NotificationEvent] = []

    def emit(self, event_type: EventType, title: Title, agent: User, extra: Dict[str, Any]) -> None:
        """Record a notification request."""
        event = NotificationEvent(type=event_type, title=title, agent=agent, extra=dict(extra))
        self.events.append(event)
        logger.info("Emitted %s on %s by %s", event_type.value, title.prefixed_text, agent.name)

    def of_type(self, event_type: EventType) -> List[NotificationEvent]:
        """Get emitted events of one type."""
        return [event for event in self.events if event.type == event_type]

    def clear(self) -> None:
        self.events.clear()
