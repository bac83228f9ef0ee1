import logging
from typing import Any, Dict, List, Optional

from django.utils import timezone

from apps.tasks.choices import NotificationKind
from .changes import ChangeNotifier
from .contracts import ProjectDirectory, TaskCleanup, TaskNotifier, TaskStore
from .dispatch import BackgroundDispatcher
from .errors import NotFoundError, TaskPermissionError, TaskValidationError
from .normalization import (
    check_assignee_bounds,
    coerce_user_id,
    extract_recurrence,
    normalize_assignee_ids,
    normalize_deadline,
    normalize_flag,
    normalize_optional_id,
    normalize_priority,
    normalize_status,
    normalize_tags,
    normalize_text,
    normalize_title,
)
from .records import TaskRecord
from .recurrence import RecurrenceSpawner

logger = logging.getLogger(__name__)


class TaskMutationEngine:
    """
    Validates and applies create / update / delete operations on tasks.

    Steps run in a fixed order: normalize and validate, authorize, persist,
    dispatch notifications, check recurrence. Validation and permission errors
    abort before anything is written. Everything after persistence is
    best-effort and never changes the returned result.
    """

    def __init__(
        self,
        store: TaskStore,
        notifier: TaskNotifier,
        projects: Optional[ProjectDirectory] = None,
        cleanup: Optional[TaskCleanup] = None,
        dispatcher: Optional[BackgroundDispatcher] = None,
    ):
        self.store = store
        self.notifier = notifier
        self.projects = projects
        self.cleanup = cleanup
        self.dispatcher = dispatcher or BackgroundDispatcher()
        self.recurrence = RecurrenceSpawner(store, cleanup)
        self.changes = ChangeNotifier(notifier, self.dispatcher)

    # ---- create ----

    async def create(self, data: Dict[str, Any], creator_id: Any = None) -> TaskRecord:
        data = data or {}
        title = normalize_title(data.get("title"))
        creator = coerce_user_id(creator_id)

        raw_assignees = data.get("assigned_to")
        assignees = normalize_assignee_ids(raw_assignees)
        # Only an absent or empty input falls back to the creator
        if not assignees and creator is not None and not raw_assignees:
            assignees = [creator]
        check_assignee_bounds(assignees)

        recurrence = extract_recurrence(data)
        deadline = normalize_deadline(data.get("deadline"))
        project_id = normalize_optional_id(data.get("project_id"), "project_id")
        parent_id = normalize_optional_id(data.get("parent_id"), "parent_id")

        if project_id is not None:
            await self._ensure_project_exists(project_id)
        if parent_id is not None:
            await self.store.get_task_by_id(parent_id)

        now = timezone.now()
        values = {
            "title": title,
            "description": normalize_text(data.get("description")),
            "priority": normalize_priority(data.get("priority")),
            "status": normalize_status(data.get("status")),
            "deadline": deadline,
            "project_id": project_id,
            "assigned_to": assignees,
            "tags": normalize_tags(data.get("tags")),
            "parent_id": parent_id,
            "archived": False,
            "recurrence_freq": recurrence.get("recurrence_freq"),
            "recurrence_interval": recurrence.get("recurrence_interval", 1),
            "recurrence_series_id": None,
            "created_by": creator,
            "created_at": now,
            "updated_at": now,
        }
        created = await self.store.insert(values)
        logger.info(f"Task {created.id} created by user {creator}")

        notify_ids = [user_id for user_id in assignees if user_id != creator]
        if notify_ids:
            self.dispatcher.spawn(
                f"task {created.id} assignment notification",
                self.notifier.notify_assignment,
                task=created,
                assignee_ids=notify_ids,
                assigned_by_id=creator,
                previous_assignee_ids=[],
                current_assignee_ids=assignees,
                kind=NotificationKind.TASK_ASSIGNMENT.value,
            )
        return created

    # ---- update ----

    async def update(self, task_id: int, patch: Dict[str, Any], requesting_user_id: Any = None) -> TaskRecord:
        current = await self.store.get_task_by_id(task_id)
        requester = coerce_user_id(requesting_user_id)
        previous_assignees = normalize_assignee_ids(current.assigned_to)
        requester_is_assignee = requester is not None and requester in previous_assignees

        changes = self._build_patch(patch or {})
        if not changes:
            raise TaskValidationError("At least one field to update is required")

        if requester is not None:
            await self._authorize_update(current, requester, requester_is_assignee)
        if changes.get("project_id") is not None:
            await self._ensure_project_exists(changes["project_id"])

        changes["updated_at"] = timezone.now()
        updated = await self.store.update_by_id(task_id, changes)
        logger.info(f"Task {task_id} updated by user {requester}: {sorted(changes)}")

        if "assigned_to" in changes:
            self._dispatch_assignee_changes(updated, previous_assignees, requester)

        self.changes.dispatch(current, updated, changes.keys(), requester)

        if not current.archived and updated.archived:
            self.dispatcher.spawn(
                f"task {task_id} archive notification",
                self._notify_deletion,
                updated,
                requester,
            )

        try:
            await self.recurrence.on_task_updated(current, updated)
        except Exception:
            logger.exception(f"Recurrence check failed for task {task_id}")

        return updated

    def _build_patch(self, data: Dict[str, Any]) -> Dict[str, Any]:
        patch: Dict[str, Any] = {}
        if "title" in data:
            patch["title"] = normalize_title(data.get("title"))
        if "description" in data:
            patch["description"] = normalize_text(data.get("description"))
        if "priority" in data:
            patch["priority"] = normalize_priority(data.get("priority"))
        if "status" in data:
            patch["status"] = normalize_status(data.get("status"))
        if "deadline" in data:
            patch["deadline"] = normalize_deadline(data.get("deadline"))
        if "archived" in data:
            patch["archived"] = normalize_flag(data.get("archived"))
        if "tags" in data:
            patch["tags"] = normalize_tags(data.get("tags"))
        if "assigned_to" in data:
            assignees = normalize_assignee_ids(data.get("assigned_to"))
            check_assignee_bounds(assignees)
            patch["assigned_to"] = assignees
        if "project_id" in data:
            patch["project_id"] = normalize_optional_id(data.get("project_id"), "project_id")
        patch.update(extract_recurrence(data))
        return patch

    def _dispatch_assignee_changes(self, updated: TaskRecord, previous: List[int], actor: Optional[int]):
        current = normalize_assignee_ids(updated.assigned_to)
        added = [user_id for user_id in current if user_id not in previous]
        removed = [user_id for user_id in previous if user_id not in current]

        if added:
            self.dispatcher.spawn(
                f"task {updated.id} reassignment notification",
                self.notifier.notify_assignment,
                task=updated,
                assignee_ids=added,
                assigned_by_id=actor,
                previous_assignee_ids=previous,
                current_assignee_ids=current,
                kind=NotificationKind.REASSIGNMENT.value,
            )
        if removed:
            self.dispatcher.spawn(
                f"task {updated.id} removal notification",
                self.notifier.notify_removal,
                task=updated,
                assignee_ids=removed,
                assigned_by_id=actor,
                previous_assignee_ids=previous,
                current_assignee_ids=current,
            )

    # ---- delete ----

    async def delete(self, task_id: int, requesting_user_id: Any = None) -> None:
        current = await self.store.get_task_by_id(task_id)
        requester = coerce_user_id(requesting_user_id)
        if requester is not None:
            await self._authorize_delete(current, requester)

        if self.cleanup is not None:
            await self._best_effort(
                f"delete attachments of task {task_id}",
                self.cleanup.delete_attachments_for_task,
                task_id,
            )
            await self._best_effort(
                f"delete stored files of task {task_id}",
                self.cleanup.delete_stored_files_for_task,
                task_id,
            )

        self.dispatcher.spawn(
            f"task {task_id} deletion notification",
            self._notify_deletion,
            current,
            requester,
        )

        await self.store.delete_task(task_id)
        logger.info(f"Task {task_id} deleted by user {requester}")

    async def _notify_deletion(self, task: TaskRecord, deleter_id: Optional[int]):
        deleter_name = None
        if deleter_id is not None:
            try:
                users = await self.store.get_users_by_ids([deleter_id])
                deleter_name = users[0].name if users else None
            except Exception:
                logger.exception(f"Could not resolve name of user {deleter_id}")
        await self.notifier.notify_deletion(task=task, deleter_id=deleter_id, deleter_name=deleter_name)

    # ---- permissions ----

    async def _authorize_update(self, task: TaskRecord, requester: int, is_assignee: bool):
        if self.projects is None or is_assignee:
            return
        if task.project_id is not None and await self._can_manage(task.project_id, requester):
            return
        raise TaskPermissionError("You do not have permission to update this task")

    async def _authorize_delete(self, task: TaskRecord, requester: int):
        if self.projects is None:
            return
        if task.project_id is None:
            if requester in normalize_assignee_ids(task.assigned_to):
                return
        elif await self._can_manage(task.project_id, requester):
            return
        raise TaskPermissionError("You do not have permission to delete this task")

    async def _can_manage(self, project_id: int, user_id: int) -> bool:
        try:
            return bool(await self.projects.can_manage_members(project_id, user_id))
        except Exception:
            logger.exception(f"Permission check failed for project {project_id}, user {user_id}")
            return False

    async def _ensure_project_exists(self, project_id: int):
        if self.projects is None:
            return
        if not await self.projects.project_exists(project_id):
            raise NotFoundError(f"Project {project_id} not found")

    async def _best_effort(self, label: str, func, *args):
        try:
            await func(*args)
        except Exception:
            logger.exception(f"Best-effort step failed: {label}")
