from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from .choices import NotificationKind, RecurrenceFrequency, TaskPriority, TaskStatus
from .services.normalization import MAX_TITLE_LENGTH
from .services.records import TaskRecord


class Task(models.Model):
    title = models.CharField(max_length=MAX_TITLE_LENGTH)
    description = models.TextField(null=True, blank=True)

    status = models.CharField(
        max_length=32,
        choices=TaskStatus.choices,
        default=TaskStatus.PENDING,
    )
    priority = models.CharField(
        max_length=16,
        choices=TaskPriority.choices,
        default=TaskPriority.MEDIUM,
    )
    deadline = models.DateField(null=True, blank=True)

    project = models.ForeignKey(
        "projects.Project",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="tasks",
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="tasks_created",
    )
    # Ordered, de-duplicated user ids
    assigned_to = models.JSONField(default=list, blank=True)
    tags = models.JSONField(default=list, blank=True)

    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="subtasks",
    )

    archived = models.BooleanField(default=False)

    recurrence_freq = models.CharField(
        max_length=16,
        choices=RecurrenceFrequency.choices,
        null=True,
        blank=True,
    )
    recurrence_interval = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    recurrence_series_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        indexes = [
            models.Index(fields=["status"], name="tasks_task_status_4a0a95_idx"),
            models.Index(fields=["priority"], name="tasks_task_priorit_a900d4_idx"),
            models.Index(fields=["archived"], name="tasks_task_archive_6b1c3e_idx"),
            models.Index(fields=["deadline"], name="tasks_task_deadlin_2f7d10_idx"),
            models.Index(fields=["created_at"], name="tasks_task_created_be1ba2_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title

    def to_record(self) -> TaskRecord:
        return TaskRecord(
            id=self.id,
            title=self.title,
            description=self.description,
            priority=self.priority,
            status=self.status,
            deadline=self.deadline,
            project_id=self.project_id,
            assigned_to=list(self.assigned_to or []),
            tags=list(self.tags or []),
            parent_id=self.parent_id,
            archived=self.archived,
            recurrence_freq=self.recurrence_freq,
            recurrence_interval=self.recurrence_interval,
            recurrence_series_id=self.recurrence_series_id,
            created_by=self.created_by_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


def attachment_upload_to(instance, filename):
    return f"{settings.TASK_FILES_PREFIX}/{instance.task_id}/{filename}"


class TaskAttachment(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="attachments")
    file = models.FileField(upload_to=attachment_upload_to)
    file_name = models.CharField(max_length=255, blank=True, default="")
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="task_attachments",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.file_name or self.file.name


class Notification(models.Model):
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    kind = models.CharField(max_length=32, choices=NotificationKind.choices)
    message = models.TextField()
    # Plain id: the task may be gone by the time the notification is read
    task_id = models.IntegerField(null=True, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["recipient", "read"], name="tasks_notif_recipie_5c8e1f_idx")]

    def __str__(self) -> str:
        return f"{self.kind} -> {self.recipient_id}"


class TaskComment(models.Model):
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="comments")
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="task_comments",
    )
    # Deleting a comment removes its whole reply thread
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="replies",
    )
    content = models.TextField()
    edited = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self) -> str:
        return f"Comment #{self.pk} on {self.task_id}"


class TaskAssigneeHours(models.Model):
    """Hours an assignee reports for a task, one row per (task, user)"""

    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="assignee_hours")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="task_hours",
    )
    hours = models.DecimalField(max_digits=7, decimal_places=2, default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["task", "user"], name="uq_task_assignee_hours")
        ]

    def __str__(self) -> str:
        return f"{self.user_id} on {self.task_id}: {self.hours}h"
