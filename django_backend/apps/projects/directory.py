import logging
from typing import Set

from apps.tasks.services.contracts import ProjectDirectory
from .models import MANAGING_ROLES, Project, ProjectMember

logger = logging.getLogger(__name__)


class DjangoProjectDirectory(ProjectDirectory):
    """Project lookups backed by the ORM"""

    async def can_manage_members(self, project_id: int, user_id: int) -> bool:
        return await ProjectMember.objects.filter(
            project_id=project_id,
            user_id=user_id,
            member_role__in=MANAGING_ROLES,
        ).aexists()

    async def project_exists(self, project_id: int) -> bool:
        return await Project.objects.filter(pk=project_id).aexists()

    async def all_project_ids(self) -> Set[int]:
        return {pk async for pk in Project.objects.values_list("id", flat=True)}

    async def member_project_ids(self, user_id: int) -> Set[int]:
        qs = ProjectMember.objects.filter(user_id=user_id).values_list("project_id", flat=True)
        return {pk async for pk in qs}

    async def created_project_ids(self, user_id: int) -> Set[int]:
        qs = Project.objects.filter(created_by_id=user_id).values_list("id", flat=True)
        return {pk async for pk in qs}

    async def subordinate_project_ids(self, division: str, hierarchy: int) -> Set[int]:
        qs = Project.objects.filter(
            created_by__division=division,
            created_by__hierarchy__lt=hierarchy,
        ).values_list("id", flat=True)
        return {pk async for pk in qs}
