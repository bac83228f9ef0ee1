from django.db import models


class TaskStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In Progress"
    COMPLETED = "completed", "Completed"
    BLOCKED = "blocked", "Blocked"
    CANCELLED = "cancelled", "Cancelled"


class TaskPriority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"
    URGENT = "urgent", "Urgent"


class RecurrenceFrequency(models.TextChoices):
    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"
    MONTHLY = "monthly", "Monthly"


class NotificationKind(models.TextChoices):
    TASK_ASSIGNMENT = "task_assignment", "Task Assignment"
    REASSIGNMENT = "reassignment", "Reassignment"
    REMOVAL = "removal", "Removal"
    UPDATE = "update", "Update"
    DELETION = "deletion", "Deletion"
    DEADLINE_UPCOMING = "deadline_upcoming", "Deadline Upcoming"
    DEADLINE_OVERDUE = "deadline_overdue", "Deadline Overdue"
    COMMENT = "comment", "Comment"
