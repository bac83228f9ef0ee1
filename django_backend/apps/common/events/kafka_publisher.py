import logging

from apps.common.kafka.config import KafkaConnection
from .base import EventPublisher, TaskEvent

logger = logging.getLogger(__name__)


class KafkaEventPublisher(EventPublisher):
    def __init__(self):
        self.producer = KafkaConnection.get_producer()

    def publish(self, topic: str, event: TaskEvent) -> bool:
        if self.producer is None:
            logger.warning(f"No Kafka producer, dropping {event.event_type} of task {event.task_id}")
            return False
        try:
            self.producer.send(topic, value=event.to_dict(), key=event.key)
            self.producer.flush()
        except Exception as e:
            logger.error(f"Could not publish {event.event_type} of task {event.task_id} to {topic}: {e}")
            return False
        logger.info(f"Published {event.event_type} of task {event.task_id} to {topic}")
        return True

    def close(self):
        KafkaConnection.close_producer()
        self.producer = None
