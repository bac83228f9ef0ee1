import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from django.conf import settings
from django.utils.module_loading import import_string


class TaskEvent:
    """
    Envelope of a task lifecycle event.

    Events are keyed by task id so every event of one task lands on the same
    partition and consumers see them in order.
    """

    def __init__(self, event_type: str, task_id: int, actor_id: Optional[int] = None,
                 data: Dict[str, Any] = None, occurred_at: datetime = None):
        self.event_id = uuid.uuid4().hex
        self.event_type = event_type
        self.task_id = task_id
        self.actor_id = actor_id
        self.data = data or {}
        self.occurred_at = occurred_at or datetime.now(timezone.utc)

    @property
    def key(self) -> str:
        return str(self.task_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'event_type': self.event_type,
            'task_id': self.task_id,
            'actor_id': self.actor_id,
            'occurred_at': self.occurred_at.isoformat(),
            'data': self.data,
        }


class EventPublisher(ABC):
    @abstractmethod
    def publish(self, topic: str, event: TaskEvent) -> bool:
        """Send ``event`` to ``topic``; False when it could not be delivered"""

    @abstractmethod
    def close(self):
        pass


PUBLISHER_BACKENDS = {
    'kafka': 'apps.common.events.kafka_publisher.KafkaEventPublisher',
    'memory': 'apps.common.events.memory_publisher.MemoryEventPublisher',
}


class EventPublisherFactory:
    """Process-wide publisher chosen by ``settings.EVENT_PUBLISHER_TYPE``"""

    _publisher = None

    @classmethod
    def get_publisher(cls) -> EventPublisher:
        if cls._publisher is None:
            backend = getattr(settings, 'EVENT_PUBLISHER_TYPE', 'kafka')
            if backend not in PUBLISHER_BACKENDS:
                raise ValueError(f"Unknown event publisher type: {backend}")
            cls._publisher = import_string(PUBLISHER_BACKENDS[backend])()
        return cls._publisher

    @classmethod
    def reset_publisher(cls):
        if cls._publisher is not None:
            cls._publisher.close()
        cls._publisher = None
