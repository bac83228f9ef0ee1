import logging

from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.filters import SearchFilter, OrderingFilter
from django.contrib.auth import get_user_model
from django.db import transaction
from django.http import Http404
from django.shortcuts import get_object_or_404

from apps.tasks.celery_tasks import deliver_task_notification
from apps.tasks.choices import NotificationKind
from apps.tasks.models import Notification, Task, TaskAssigneeHours, TaskComment
from apps.tasks.services.access import ROLE_ADMIN, ROLE_HR, can_comment_on_task, is_task_visible
from apps.tasks.services.errors import TaskPermissionError, TaskValidationError
from apps.tasks.services.hours import normalize_hours, summarize_hours
from apps.tasks.services.normalization import normalize_optional_id
from apps.tasks.wiring import accessible_project_ids, run_engine
from .serializers import NotificationSerializer, TaskCommentSerializer, TaskSerializer

logger = logging.getLogger(__name__)
User = get_user_model()

LIST_FIELDS = ("assigned_to", "tags")


def task_payload(data):
    """Plain dict out of JSON or form data, keeping list fields as lists"""
    if hasattr(data, "getlist"):
        return {k: data.getlist(k) if k in LIST_FIELDS else data.get(k) for k in data.keys()}
    return dict(data)


def comment_content(data):
    content = data.get("content")
    if not isinstance(content, str) or not content.strip():
        raise TaskValidationError("Comment content is required")
    return content.strip()


def comment_threads(comments):
    """Nest replies under their parents; newest threads first, replies oldest first"""
    nodes = {c.id: {**TaskCommentSerializer(c).data, "replies": []} for c in comments}
    roots = []
    for c in comments:
        if c.parent_id in nodes:
            nodes[c.parent_id]["replies"].append(nodes[c.id])
        else:
            roots.append(nodes[c.id])
    roots.reverse()
    return roots


class TaskViewSet(viewsets.ModelViewSet):
    """
    Task CRUD. Writes go through the task engine, which validates, authorizes
    and dispatches notifications. Reads are limited to tasks the requester can see.
    """

    serializer_class = TaskSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"\d+"
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_fields = ["status", "priority", "project", "parent", "archived"]
    search_fields = ["title", "description"]
    ordering_fields = ["deadline", "priority", "created_at", "updated_at"]
    ordering = ["-created_at"]

    def get_queryset(self):
        qs = Task.objects.all()
        if "archived" not in self.request.query_params:
            qs = qs.filter(archived=False)
        return qs

    def _visible(self, tasks):
        user = self.request.user
        project_ids = accessible_project_ids(user)
        return [t for t in tasks if is_task_visible(t, user.id, project_ids)]

    def get_object(self):
        task = super().get_object()
        if not self._visible([task]):
            raise Http404
        return task

    def list(self, request, *args, **kwargs):
        tasks = self._visible(self.filter_queryset(self.get_queryset()))
        page = self.paginate_queryset(tasks)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(tasks, many=True).data)

    def create(self, request, *args, **kwargs):
        record = run_engine("create", task_payload(request.data), creator_id=request.user.id)
        task = Task.objects.get(pk=record.id)
        return Response(self.get_serializer(task).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        record = run_engine(
            "update", int(kwargs["pk"]), task_payload(request.data),
            requesting_user_id=request.user.id,
        )
        task = Task.objects.get(pk=record.id)
        removed, _ = task.assignee_hours.exclude(user_id__in=task.assigned_to or []).delete()
        if removed:
            logger.info(f"Dropped {removed} hour entries of unassigned users on task {task.id}")
        return Response(self.get_serializer(task).data)

    def destroy(self, request, *args, **kwargs):
        run_engine("delete", int(kwargs["pk"]), requesting_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"])
    def subtasks(self, request, pk=None):
        task = self.get_object()
        qs = task.subtasks.filter(archived=False).order_by("created_at", "id")
        return Response(TaskSerializer(qs, many=True).data)

    def _assignees(self, task):
        return [u.to_record() for u in User.objects.filter(id__in=task.assigned_to or [])]

    @action(detail=True, methods=["post"])
    def comments(self, request, pk=None):
        task = get_object_or_404(Task, pk=pk)
        assignees = self._assignees(task)
        if not can_comment_on_task(request.user.to_record(), assignees):
            raise TaskPermissionError("Not authorized to comment on this task")

        content = comment_content(request.data)
        parent_id = normalize_optional_id(request.data.get("parent_id"), "parent_id")
        parent = None
        if parent_id is not None:
            parent = TaskComment.objects.filter(pk=parent_id, task=task).first()
            if parent is None:
                raise TaskValidationError("Parent comment does not belong to this task")

        comment = TaskComment.objects.create(task=task, author=request.user, parent=parent, content=content)
        logger.info(f"User {request.user.id} commented on task {task.id}")

        recipients = [a.id for a in assignees if a.id != request.user.id]
        if recipients:
            subject = f"New comment on task: {task.title}"
            body = f'{request.user.name} commented on "{task.title}": {content}'
            transaction.on_commit(lambda: deliver_task_notification.delay(
                NotificationKind.COMMENT.value, task.id, task.title, recipients, subject, body,
                actor_id=request.user.id,
            ))

        return Response(TaskCommentSerializer(comment).data, status=status.HTTP_201_CREATED)

    @comments.mapping.get
    def list_comments(self, request, pk=None):
        task = get_object_or_404(Task, pk=pk)
        if not self._visible([task]) and not can_comment_on_task(
            request.user.to_record(), self._assignees(task)
        ):
            raise Http404
        comments = list(task.comments.select_related("author"))
        return Response(comment_threads(comments))

    @action(detail=True, methods=["post"])
    def hours(self, request, pk=None):
        task = self.get_object()
        if request.user.id not in (task.assigned_to or []):
            raise TaskPermissionError("Only assignees can log hours on this task")

        hours = normalize_hours(request.data.get("hours"))
        TaskAssigneeHours.objects.update_or_create(task=task, user=request.user, defaults={"hours": hours})
        logger.info(f"User {request.user.id} logged {hours}h on task {task.id}")
        return Response(self._hours_summary(task))

    @hours.mapping.get
    def hours_summary(self, request, pk=None):
        return Response(self._hours_summary(self.get_object()))

    def _hours_summary(self, task):
        recorded = dict(task.assignee_hours.values_list("user_id", "hours"))
        return summarize_hours(recorded, task.assigned_to or [])


class TaskCommentViewSet(mixins.UpdateModelMixin, mixins.DestroyModelMixin, viewsets.GenericViewSet):
    """Editing by the author and moderation by admins and HR. Comments are created under a task."""

    serializer_class = TaskCommentSerializer
    permission_classes = [permissions.IsAuthenticated]
    queryset = TaskComment.objects.select_related("author")
    http_method_names = ["patch", "delete"]

    def partial_update(self, request, *args, **kwargs):
        comment = self.get_object()
        if comment.author_id != request.user.id:
            raise TaskPermissionError("Only the author can edit this comment")
        comment.content = comment_content(request.data)
        comment.edited = True
        comment.save(update_fields=["content", "edited", "updated_at"])
        return Response(TaskCommentSerializer(comment).data)

    def destroy(self, request, *args, **kwargs):
        comment = self.get_object()
        if request.user.role not in (ROLE_ADMIN, ROLE_HR):
            raise TaskPermissionError("Only admins and HR can delete comments")
        comment.delete()
        logger.info(f"User {request.user.id} deleted comment {kwargs['pk']}")
        return Response(status=status.HTTP_204_NO_CONTENT)


class NotificationViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["read", "kind"]

    def get_queryset(self):
        return Notification.objects.filter(recipient=self.request.user).order_by("-created_at", "-id")

    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        notification = self.get_object()
        if not notification.read:
            notification.read = True
            notification.save(update_fields=["read"])
        return Response(NotificationSerializer(notification).data)
