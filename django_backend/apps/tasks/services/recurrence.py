import calendar
import logging
import uuid
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from django.utils import timezone

from apps.tasks.choices import RecurrenceFrequency, TaskStatus
from .contracts import TaskCleanup, TaskStore
from .normalization import parse_deadline
from .records import TaskRecord

logger = logging.getLogger(__name__)


def add_months(start: date, months: int) -> date:
    """Same day-of-month ``months`` later, clamped to the last day of short months"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_due_date(previous_deadline: Any, freq: Optional[str], interval: Optional[int]) -> Optional[date]:
    """
    Due date of the next instance, counted from the previous due date.

    Returns None when there is no usable previous deadline.
    """
    base = parse_deadline(previous_deadline)
    if base is None or not freq:
        return None
    steps = max(1, int(interval or 1))
    if freq == RecurrenceFrequency.DAILY:
        return base + timedelta(days=steps)
    if freq == RecurrenceFrequency.WEEKLY:
        return base + timedelta(days=7 * steps)
    if freq == RecurrenceFrequency.MONTHLY:
        return add_months(base, steps)
    return None


def is_completion_transition(before: TaskRecord, after: TaskRecord) -> bool:
    return before.status != TaskStatus.COMPLETED and after.status == TaskStatus.COMPLETED


class RecurrenceSpawner:
    """
    Creates the next instance of a recurring task when it gets completed.

    When an attachment collaborator is given, the new instance also receives
    copies of its predecessor's attachments.
    """

    def __init__(self, store: TaskStore, attachments: Optional[TaskCleanup] = None):
        self.store = store
        self.attachments = attachments

    def should_spawn(self, before: TaskRecord, after: TaskRecord) -> bool:
        return is_completion_transition(before, after) and bool(before.recurrence_freq)

    async def on_task_updated(self, before: TaskRecord, after: TaskRecord) -> Optional[TaskRecord]:
        if not self.should_spawn(before, after):
            return None

        freq = before.recurrence_freq
        interval = before.recurrence_interval or 1
        series_id = before.recurrence_series_id
        if not series_id:
            series_id = uuid.uuid4().hex
            await self.store.update_by_id(before.id, {"recurrence_series_id": series_id})
            logger.info(f"Started recurrence series {series_id} from task {before.id}")

        next_due = next_due_date(before.deadline, freq, interval)
        instance = await self.store.insert(
            self._instance_values(after, next_due, None, freq, interval, series_id)
        )
        logger.info(f"Spawned recurring task {instance.id} from task {before.id} (due {next_due})")

        if self.attachments is not None:
            try:
                await self.attachments.copy_attachments_to_task(before.id, instance.id, after.created_by)
            except Exception:
                logger.exception(f"Failed to copy attachments of task {before.id} onto {instance.id}")

        try:
            await self._clone_subtasks(before, instance, freq, interval, series_id)
        except Exception:
            logger.exception(f"Failed to clone subtasks of task {before.id} onto {instance.id}")

        return instance

    async def _clone_subtasks(self, before, instance, freq, interval, series_id) -> List[TaskRecord]:
        children = await self.store.get_subtasks(before.id)
        payloads = []
        for child in children:
            if child.archived:
                continue
            child_due = next_due_date(child.deadline or before.deadline, freq, interval)
            payloads.append(
                self._instance_values(child, child_due, instance.id, freq, interval, series_id)
            )
        if not payloads:
            return []
        clones = await self.store.insert_many(payloads)
        logger.info(f"Cloned {len(clones)} subtasks onto recurring task {instance.id}")
        return clones

    @staticmethod
    def _instance_values(
        source: TaskRecord,
        deadline: Optional[date],
        parent_id: Optional[int],
        freq: str,
        interval: int,
        series_id: str,
    ) -> Dict[str, Any]:
        now = timezone.now()
        return {
            "title": source.title,
            "description": source.description,
            "priority": source.priority,
            "status": TaskStatus.PENDING.value,
            "deadline": deadline,
            "project_id": source.project_id,
            "assigned_to": list(source.assigned_to or []),
            "tags": list(source.tags or []),
            "parent_id": parent_id,
            "archived": False,
            "recurrence_freq": freq,
            "recurrence_interval": interval,
            "recurrence_series_id": series_id,
            "created_by": source.created_by,
            "created_at": now,
            "updated_at": now,
        }
