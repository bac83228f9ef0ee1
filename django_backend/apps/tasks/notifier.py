import logging
from typing import Iterable, List, Optional

from asgiref.sync import sync_to_async
from django.contrib.auth import get_user_model

from .celery_tasks import deliver_task_notification
from .choices import NotificationKind, TaskStatus
from .producer.events import (
    publish_task_assigned,
    publish_task_completed,
    publish_task_deleted,
    publish_task_unassigned,
    publish_task_updated,
)
from .services.contracts import TaskNotifier
from .services.records import FieldChange, TaskRecord

logger = logging.getLogger(__name__)

User = get_user_model()


def _recipients(ids: Iterable[int], actor_id: Optional[int]) -> List[int]:
    return [user_id for user_id in ids if user_id != actor_id]


def format_changes(changes: List[FieldChange]) -> str:
    return "\n".join(f"- {c.label}: {c.before} -> {c.after}" for c in changes)


class CeleryTaskNotifier(TaskNotifier):
    """
    Hands notifications to the ``deliver_task_notification`` Celery task
    and publishes the matching task event.

    Every call returns as soon as the job is queued. The acting user is never
    notified about their own change.
    """

    async def notify_assignment(
        self,
        *,
        task: TaskRecord,
        assignee_ids: List[int],
        assigned_by_id: Optional[int],
        previous_assignee_ids: List[int],
        current_assignee_ids: List[int],
        kind: str,
    ) -> None:
        actor = await self._user_name(assigned_by_id)
        if kind == NotificationKind.REASSIGNMENT:
            body = f"{actor} added you to the task '{task.title}'."
        else:
            body = f"{actor} assigned you to the task '{task.title}'."
        body += f"\nPriority: {task.priority}\nDeadline: {task.deadline or 'None'}"

        await self._deliver(
            kind, task, _recipients(assignee_ids, assigned_by_id),
            f"[Assignment] {task.title}", body, assigned_by_id,
        )
        await sync_to_async(publish_task_assigned)(task, assigned_by_id, list(assignee_ids), kind)

    async def notify_removal(
        self,
        *,
        task: TaskRecord,
        assignee_ids: List[int],
        assigned_by_id: Optional[int],
        previous_assignee_ids: List[int],
        current_assignee_ids: List[int],
    ) -> None:
        actor = await self._user_name(assigned_by_id)
        body = f"{actor} removed you from the task '{task.title}'."

        await self._deliver(
            NotificationKind.REMOVAL.value, task, _recipients(assignee_ids, assigned_by_id),
            f"[Removed] {task.title}", body, assigned_by_id,
        )
        await sync_to_async(publish_task_unassigned)(task, assigned_by_id, list(assignee_ids))

    async def notify_update(
        self,
        *,
        task: TaskRecord,
        changes: List[FieldChange],
        updated_by_id: Optional[int],
        assignee_ids: List[int],
    ) -> None:
        actor = await self._user_name(updated_by_id)
        body = f"{actor} updated the task '{task.title}':\n{format_changes(changes)}"

        await self._deliver(
            NotificationKind.UPDATE.value, task, _recipients(assignee_ids, updated_by_id),
            f"[Update] {task.title}", body, updated_by_id,
        )
        await sync_to_async(publish_task_updated)(task, updated_by_id, [c.to_dict() for c in changes])
        if any(c.field == "status" for c in changes) and task.status == TaskStatus.COMPLETED:
            await sync_to_async(publish_task_completed)(task, updated_by_id)

    async def notify_deletion(
        self,
        *,
        task: TaskRecord,
        deleter_id: Optional[int],
        deleter_name: Optional[str],
    ) -> None:
        body = f"{deleter_name or 'Someone'} deleted the task '{task.title}'."

        await self._deliver(
            NotificationKind.DELETION.value, task, _recipients(task.assigned_to or [], deleter_id),
            f"[Deleted] {task.title}", body, deleter_id,
        )
        await sync_to_async(publish_task_deleted)(task, deleter_id)

    async def _deliver(self, kind, task, recipient_ids, subject, body, actor_id):
        if not recipient_ids:
            logger.debug(f"No recipients for {kind} notification of task {task.id}")
            return
        await sync_to_async(deliver_task_notification.delay)(
            kind, task.id, task.title, recipient_ids, subject, body, actor_id
        )
        logger.info(f"Queued {kind} notification of task {task.id} for {len(recipient_ids)} users")

    async def _user_name(self, user_id: Optional[int]) -> str:
        if user_id is None:
            return "Someone"
        user = await User.objects.filter(pk=user_id).afirst()
        return user.name if user else "Someone"
