from django.conf import settings
from django.db import models


class MemberRole(models.TextChoices):
    CREATOR = "creator", "Creator"
    MANAGER = "manager", "Manager"
    COLLABORATOR = "collaborator", "Collaborator"


MANAGING_ROLES = (MemberRole.CREATOR, MemberRole.MANAGER)


class Project(models.Model):
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="projects_created",
    )
    members = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="ProjectMember",
        related_name="projects",
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.name

    def can_manage(self, user):
        """Creators and managers of the project may manage its members and tasks"""
        return self.memberships.filter(user=user, member_role__in=MANAGING_ROLES).exists()

    def add_member(self, user, member_role=MemberRole.COLLABORATOR):
        membership, _ = ProjectMember.objects.update_or_create(
            project=self, user=user, defaults={"member_role": member_role}
        )
        return membership


class ProjectMember(models.Model):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="project_memberships",
    )
    member_role = models.CharField(
        max_length=16,
        choices=MemberRole.choices,
        default=MemberRole.COLLABORATOR,
    )
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["project", "user"], name="uq_project_user")
        ]

    def __str__(self):
        return f"{self.user_id} -> {self.project_id} ({self.member_role})"
