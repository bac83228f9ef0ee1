import logging
from typing import Any, Dict, Iterable, List

from django.contrib.auth import get_user_model

from .models import Task
from .services.contracts import TaskStore
from .services.errors import NotFoundError
from .services.records import TaskRecord, UserRecord

logger = logging.getLogger(__name__)

User = get_user_model()

# Record keys that differ from the model's column attribute names
_COLUMN_NAMES = {"created_by": "created_by_id"}


def _columns(values: Dict[str, Any]) -> Dict[str, Any]:
    return {_COLUMN_NAMES.get(key, key): value for key, value in values.items() if key != "id"}


class DjangoTaskStore(TaskStore):
    """TaskStore on top of the async ORM"""

    async def get_task_by_id(self, task_id: int) -> TaskRecord:
        try:
            task = await Task.objects.aget(pk=task_id)
        except Task.DoesNotExist:
            raise NotFoundError(f"Task {task_id} not found")
        return task.to_record()

    async def insert(self, values: Dict[str, Any]) -> TaskRecord:
        task = await Task.objects.acreate(**_columns(values))
        logger.debug(f"Inserted task {task.id}")
        return task.to_record()

    async def insert_many(self, values: List[Dict[str, Any]]) -> List[TaskRecord]:
        tasks = await Task.objects.abulk_create([Task(**_columns(v)) for v in values])
        logger.debug(f"Inserted {len(tasks)} tasks in one batch")
        return [t.to_record() for t in tasks]

    async def update_by_id(self, task_id: int, patch: Dict[str, Any]) -> TaskRecord:
        updated = await Task.objects.filter(pk=task_id).aupdate(**_columns(patch))
        if not updated:
            raise NotFoundError(f"Task {task_id} not found")
        logger.debug(f"Updated task {task_id}: {sorted(patch)}")
        return await self.get_task_by_id(task_id)

    async def delete_task(self, task_id: int) -> bool:
        deleted, _ = await Task.objects.filter(pk=task_id).adelete()
        return deleted > 0

    async def get_subtasks(self, parent_id: int) -> List[TaskRecord]:
        qs = Task.objects.filter(parent_id=parent_id, archived=False).order_by("created_at", "id")
        return [t.to_record() async for t in qs]

    async def get_users_by_ids(self, ids: Iterable[int]) -> List[UserRecord]:
        ids = list(ids)
        found = {u.id: u async for u in User.objects.filter(id__in=ids)}
        return [found[i].to_record() for i in ids if i in found]
