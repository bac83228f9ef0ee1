"""Task lifecycle events published on the task events topic."""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from apps.common.events import EventPublisherFactory, TaskEvent
from apps.common.kafka.config import task_events_topic
from apps.tasks.services.records import TaskRecord

logger = logging.getLogger(__name__)


class TaskEventType(str, Enum):
    UPDATED = "task_updated"
    COMPLETED = "task_completed"
    DELETED = "task_deleted"
    ASSIGNED = "task_assigned"
    UNASSIGNED = "task_unassigned"


def _snapshot(task: TaskRecord) -> Dict[str, Any]:
    return {
        "title": task.title,
        "status": task.status,
        "project_id": task.project_id,
        "assigned_to": list(task.assigned_to or []),
    }


def publish_task_event(event_type: TaskEventType, task: TaskRecord, actor_id: Optional[int],
                       **extra) -> bool:
    """
    Publish one event about ``task``. Publishing never raises; a failure is
    logged and reported as False.
    """
    event = TaskEvent(
        event_type=event_type.value,
        task_id=task.id,
        actor_id=actor_id,
        data={**_snapshot(task), **extra},
    )
    try:
        return EventPublisherFactory.get_publisher().publish(task_events_topic(), event)
    except Exception:
        logger.exception(f"Publishing {event_type.value} of task {task.id} failed")
        return False


def publish_task_updated(task: TaskRecord, actor_id: Optional[int], changes: List[Dict[str, Any]]):
    return publish_task_event(TaskEventType.UPDATED, task, actor_id, changes=changes)


def publish_task_completed(task: TaskRecord, actor_id: Optional[int]):
    return publish_task_event(TaskEventType.COMPLETED, task, actor_id)


def publish_task_deleted(task: TaskRecord, actor_id: Optional[int]):
    return publish_task_event(TaskEventType.DELETED, task, actor_id)


def publish_task_assigned(task: TaskRecord, actor_id: Optional[int], assignee_ids: List[int], kind: str):
    return publish_task_event(TaskEventType.ASSIGNED, task, actor_id, assignee_ids=assignee_ids, kind=kind)


def publish_task_unassigned(task: TaskRecord, actor_id: Optional[int], assignee_ids: List[int]):
    return publish_task_event(TaskEventType.UNASSIGNED, task, actor_id, assignee_ids=assignee_ids)
