from rest_framework import serializers
from apps.tasks.models import Notification, Task, TaskComment


class TaskSerializer(serializers.ModelSerializer):
    project_id = serializers.IntegerField(read_only=True, allow_null=True)
    parent_id = serializers.IntegerField(read_only=True, allow_null=True)
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "status",
            "priority",
            "deadline",
            "project_id",
            "parent_id",
            "assigned_to",
            "tags",
            "archived",
            "recurrence_freq",
            "recurrence_interval",
            "recurrence_series_id",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "kind", "message", "task_id", "read", "created_at"]
        read_only_fields = fields


class TaskCommentSerializer(serializers.ModelSerializer):
    task_id = serializers.IntegerField(read_only=True)
    parent_id = serializers.IntegerField(read_only=True, allow_null=True)
    author_name = serializers.CharField(source="author.name", read_only=True)

    class Meta:
        model = TaskComment
        fields = [
            "id",
            "task_id",
            "parent_id",
            "author",
            "author_name",
            "content",
            "edited",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
