from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Set

from .records import FieldChange, TaskRecord, UserRecord


class TaskStore(ABC):
    """Persistent task store consumed by the engine"""

    @abstractmethod
    async def get_task_by_id(self, task_id: int) -> TaskRecord:
        """Return the task or raise NotFoundError"""

    @abstractmethod
    async def insert(self, values: Dict[str, Any]) -> TaskRecord:
        pass

    @abstractmethod
    async def insert_many(self, values: List[Dict[str, Any]]) -> List[TaskRecord]:
        pass

    @abstractmethod
    async def update_by_id(self, task_id: int, patch: Dict[str, Any]) -> TaskRecord:
        pass

    @abstractmethod
    async def delete_task(self, task_id: int) -> bool:
        pass

    @abstractmethod
    async def get_subtasks(self, parent_id: int) -> List[TaskRecord]:
        """Non-archived children of a task, oldest first"""

    @abstractmethod
    async def get_users_by_ids(self, ids: Iterable[int]) -> List[UserRecord]:
        pass


class ProjectDirectory(ABC):
    """Read-only view of projects, memberships and project permissions"""

    @abstractmethod
    async def can_manage_members(self, project_id: int, user_id: int) -> bool:
        pass

    @abstractmethod
    async def project_exists(self, project_id: int) -> bool:
        pass

    @abstractmethod
    async def all_project_ids(self) -> Set[int]:
        pass

    @abstractmethod
    async def member_project_ids(self, user_id: int) -> Set[int]:
        pass

    @abstractmethod
    async def created_project_ids(self, user_id: int) -> Set[int]:
        pass

    @abstractmethod
    async def subordinate_project_ids(self, division: str, hierarchy: int) -> Set[int]:
        """Projects created by users of ``division`` ranked strictly below ``hierarchy``"""


class TaskNotifier(ABC):
    """Outbound notification delivery. Calls are fire-and-forget from the engine"""

    @abstractmethod
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
        pass

    @abstractmethod
    async def notify_removal(
        self,
        *,
        task: TaskRecord,
        assignee_ids: List[int],
        assigned_by_id: Optional[int],
        previous_assignee_ids: List[int],
        current_assignee_ids: List[int],
    ) -> None:
        pass

    @abstractmethod
    async def notify_update(
        self,
        *,
        task: TaskRecord,
        changes: List[FieldChange],
        updated_by_id: Optional[int],
        assignee_ids: List[int],
    ) -> None:
        pass

    @abstractmethod
    async def notify_deletion(
        self,
        *,
        task: TaskRecord,
        deleter_id: Optional[int],
        deleter_name: Optional[str],
    ) -> None:
        pass


class TaskCleanup(ABC):
    """Attachment and stored-file housekeeping: cleanup on hard delete, copies for recurring instances"""

    @abstractmethod
    async def delete_attachments_for_task(self, task_id: int) -> int:
        pass

    @abstractmethod
    async def delete_stored_files_for_task(self, task_id: int) -> int:
        pass

    @abstractmethod
    async def copy_attachments_to_task(
        self, source_task_id: int, dest_task_id: int, user_id: Optional[int] = None
    ) -> int:
        """Copy every attachment of the source task onto the destination; returns how many were copied"""
