import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.mail import send_mail
from django.utils import timezone

from apps.tasks.choices import NotificationKind, TaskStatus
from apps.tasks.models import Notification, Task

logger = logging.getLogger(__name__)

User = get_user_model()

FINISHED_STATUSES = [TaskStatus.COMPLETED, TaskStatus.CANCELLED]


def _emails(users):
    return sorted({u.email for u in users if getattr(u, "email", None)})


def _notify(users, subject, body):
    recipients = _emails(users)
    if not recipients:
        return 0
    send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, recipients, fail_silently=True)
    return len(recipients)


@shared_task
def deliver_task_notification(kind, task_id, task_title, recipient_ids, subject, body, actor_id=None):
    """
    Store in-app notifications and email the recipients of a task event.
    Unknown recipient ids are skipped. Returns the number of notifications stored.
    """
    users = list(User.objects.filter(id__in=recipient_ids, is_active=True))
    if not users:
        logger.info(f"No active recipients for {kind} notification of task {task_id}")
        return 0

    Notification.objects.bulk_create([
        Notification(recipient=u, kind=kind, message=body, task_id=task_id)
        for u in users
    ])
    sent = _notify(users, subject, body)
    logger.info(
        f"Delivered {kind} notification of task {task_id} ('{task_title}') "
        f"to {len(users)} users, {sent} emails"
    )
    return len(users)


def _already_notified(task, kind, since):
    return Notification.objects.filter(task_id=task.id, kind=kind, created_at__gte=since).exists()


@shared_task
def check_task_deadlines():
    """
    Notify assignees of open tasks that are due within 24 hours or overdue.
    Each task gets at most one reminder of each kind per day.
    Returns the number of notifications queued.
    """
    now = timezone.now()
    today = timezone.localdate()
    day_start = now - timedelta(days=1)

    qs = (
        Task.objects.filter(archived=False, deadline__isnull=False, deadline__lte=today + timedelta(days=1))
        .exclude(status__in=FINISHED_STATUSES)
        .order_by("deadline", "id")
    )

    queued = 0
    for task in qs:
        if task.deadline < today:
            kind = NotificationKind.DEADLINE_OVERDUE
            subject = f"[Overdue] {task.title}"
            body = f"The task '{task.title}' is overdue (deadline: {task.deadline})."
        else:
            kind = NotificationKind.DEADLINE_UPCOMING
            subject = f"[Deadline] {task.title}"
            body = f"The task '{task.title}' is due on {task.deadline}."

        recipients = list(task.assigned_to or [])
        if not recipients or _already_notified(task, kind, day_start):
            continue

        deliver_task_notification.delay(kind.value, task.id, task.title, recipients, subject, body)
        queued += 1

    logger.info(f"Deadline check queued {queued} notifications")
    return queued
