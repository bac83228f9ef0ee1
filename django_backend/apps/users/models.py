from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    ADMIN = "admin", "Admin"
    HR = "hr", "HR"
    MANAGER = "manager", "Manager"
    STAFF = "staff", "Staff"


class User(AbstractUser):
    display_name = models.CharField(max_length=150, blank=True, default="")
    role = models.CharField(max_length=16, choices=UserRole.choices, default=UserRole.STAFF)
    department = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Dot separated department path, e.g. finance.payroll",
    )
    hierarchy = models.PositiveIntegerField(
        default=1,
        help_text="Rank inside the division, lower is more senior",
    )
    division = models.CharField(max_length=100, blank=True, default="")

    class Meta:
        indexes = [models.Index(fields=["division", "hierarchy"], name="users_user_divisio_0b9a2e_idx")]

    def __str__(self):
        return self.username

    @property
    def name(self):
        return self.display_name or self.get_full_name() or self.username

    @property
    def can_create_projects(self):
        return self.role in (UserRole.ADMIN, UserRole.MANAGER)

    def to_record(self):
        from apps.tasks.services.records import UserRecord

        return UserRecord(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            department=self.department or None,
            hierarchy=self.hierarchy,
            division=self.division or None,
        )
