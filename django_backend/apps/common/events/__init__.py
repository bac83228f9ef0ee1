from .base import EventPublisher, EventPublisherFactory, TaskEvent

__all__ = ["EventPublisher", "EventPublisherFactory", "TaskEvent"]
