import logging
from typing import Dict, List, Optional, Tuple

from .base import EventPublisher, TaskEvent

logger = logging.getLogger(__name__)


class MemoryEventPublisher(EventPublisher):
    """Keeps published events in process, used by tests and local runs without a broker"""

    def __init__(self):
        self.published: List[Tuple[str, Dict]] = []

    def publish(self, topic: str, event: TaskEvent) -> bool:
        self.published.append((topic, {**event.to_dict(), 'key': event.key}))
        logger.debug(f"Kept {event.event_type} of task {event.task_id} for topic {topic}")
        return True

    def get_events(self, topic: str, event_type: Optional[str] = None) -> List[Dict]:
        return [
            event for name, event in self.published
            if name == topic and (event_type is None or event['event_type'] == event_type)
        ]

    def clear_events(self):
        self.published.clear()

    def close(self):
        pass
