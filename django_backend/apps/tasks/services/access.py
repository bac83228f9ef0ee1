"""
Role based visibility of projects, tasks and users.

Role, hierarchy rank, division and department are passed in explicitly so the
rules stay a function of their inputs, independent of the request.
"""

import logging
from typing import Iterable, List, Optional, Set

from .contracts import ProjectDirectory
from .records import TaskRecord, UserRecord

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_HR = "hr"
ROLE_MANAGER = "manager"
ROLE_STAFF = "staff"


def department_hierarchy_match(candidate: Optional[str], ancestor: Optional[str]) -> bool:
    """
    True if ``candidate`` is ``ancestor`` or one of its sub-departments.

    Plain string comparison, so two empty paths match. A missing (None)
    department never matches anything.
    """
    if candidate is None or ancestor is None:
        return False
    return candidate == ancestor or candidate.startswith(ancestor + ".")


def is_task_visible(task: TaskRecord, user_id: int, project_ids: Set[int]) -> bool:
    if task.project_id is not None and task.project_id in project_ids:
        return True
    return user_id in (task.assigned_to or [])


class AccessResolver:
    def __init__(self, projects: ProjectDirectory):
        self.projects = projects

    async def accessible_project_ids(
        self,
        user_id: int,
        role: Optional[str],
        hierarchy: Optional[int] = None,
        division: Optional[str] = None,
    ) -> Set[int]:
        if role == ROLE_ADMIN:
            return set(await self.projects.all_project_ids())

        project_ids = set(await self.projects.member_project_ids(user_id))
        project_ids |= set(await self.projects.created_project_ids(user_id))

        if role == ROLE_MANAGER and division and hierarchy is not None:
            project_ids |= set(await self.projects.subordinate_project_ids(division, hierarchy))

        logger.debug(f"User {user_id} ({role}) can access {len(project_ids)} projects")
        return project_ids

    async def filter_visible_tasks(
        self,
        tasks: Iterable[TaskRecord],
        user_id: int,
        role: Optional[str],
        hierarchy: Optional[int] = None,
        division: Optional[str] = None,
    ) -> List[TaskRecord]:
        project_ids = await self.accessible_project_ids(user_id, role, hierarchy, division)
        return [t for t in tasks if is_task_visible(t, user_id, project_ids)]


def can_view_user(requester: UserRecord, target: UserRecord) -> bool:
    if requester.role == ROLE_ADMIN or requester.id == target.id:
        return True
    if requester.role == ROLE_HR:
        return department_hierarchy_match(target.department, requester.department)
    if requester.role == ROLE_MANAGER:
        if not requester.division or requester.division != target.division:
            return False
        if requester.hierarchy is None or target.hierarchy is None:
            return False
        return target.hierarchy < requester.hierarchy
    return False


def visible_users(requester: UserRecord, users: Iterable[UserRecord]) -> List[UserRecord]:
    return [u for u in users if can_view_user(requester, u)]


def can_comment_on_task(requester: UserRecord, assignees: Iterable[UserRecord]) -> bool:
    """
    Admins and HR may comment on any task, assignees on their own tasks, and
    managers on tasks assigned to someone below them in their division.
    """
    if requester.role in (ROLE_ADMIN, ROLE_HR):
        return True
    assignees = list(assignees)
    if any(a.id == requester.id for a in assignees):
        return True
    if requester.role == ROLE_MANAGER:
        return any(can_view_user(requester, a) for a in assignees)
    return False
