import json
import logging

from django.conf import settings

logger = logging.getLogger(__name__)


def task_events_topic() -> str:
    return getattr(settings, "TASK_EVENTS_TOPIC", "task-events")


class KafkaConnection:
    """Lazily created producer shared by the process"""

    _producer = None

    @classmethod
    def get_producer(cls):
        if cls._producer is not None:
            return cls._producer

        from kafka import KafkaProducer

        servers = [s.strip() for s in settings.KAFKA_BOOTSTRAP_SERVERS.split(",") if s.strip()]
        try:
            cls._producer = KafkaProducer(
                bootstrap_servers=servers,
                client_id=getattr(settings, "KAFKA_CLIENT_ID", "task-lifecycle"),
                value_serializer=lambda value: json.dumps(value, default=str).encode("utf-8"),
                key_serializer=lambda key: key.encode("utf-8") if key else None,
                acks="all",
                retries=3,
                retry_backoff_ms=300,
            )
            logger.info(f"Kafka producer connected to {servers}")
        except Exception as e:
            logger.error(f"Kafka producer unavailable ({servers}): {e}")
            cls._producer = None
        return cls._producer

    @classmethod
    def close_producer(cls):
        if cls._producer is not None:
            cls._producer.close()
        cls._producer = None
