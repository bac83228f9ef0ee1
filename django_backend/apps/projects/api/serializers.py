from django.contrib.auth import get_user_model
from rest_framework import serializers
from apps.projects.models import MemberRole, Project, ProjectMember

User = get_user_model()


class ProjectMemberSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(read_only=True)
    name = serializers.CharField(source="user.name", read_only=True)

    class Meta:
        model = ProjectMember
        fields = ["user_id", "name", "member_role", "joined_at"]


class ProjectSerializer(serializers.ModelSerializer):
    created_by = serializers.PrimaryKeyRelatedField(read_only=True)
    members = ProjectMemberSerializer(source="memberships", many=True, read_only=True)
    can_manage = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = ["id", "name", "description", "created_by", "members", "can_manage", "created_at"]
        read_only_fields = ["created_by", "created_at"]

    def get_can_manage(self, obj):
        request = self.context.get("request")
        if request and request.user.is_authenticated:
            return obj.can_manage(request.user)
        return False


class ProjectCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Project
        fields = ["id", "name", "description"]


class MemberActionSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    member_role = serializers.ChoiceField(
        choices=[MemberRole.MANAGER, MemberRole.COLLABORATOR],
        default=MemberRole.COLLABORATOR,
    )

    def validate_user_id(self, value):
        if not User.objects.filter(id=value).exists():
            raise serializers.ValidationError("User not found.")
        return value
