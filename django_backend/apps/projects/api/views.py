import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.projects.models import MemberRole, Project
from apps.tasks.wiring import accessible_project_ids
from .permissions import CanCreateProjects
from .serializers import MemberActionSerializer, ProjectCreateSerializer, ProjectSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


class ProjectViewSet(mixins.ListModelMixin,
                     mixins.RetrieveModelMixin,
                     mixins.CreateModelMixin,
                     viewsets.GenericViewSet):
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        ids = accessible_project_ids(self.request.user)
        return Project.objects.filter(id__in=ids).prefetch_related("memberships__user").order_by("-created_at")

    def get_serializer_class(self):
        if self.action == "create":
            return ProjectCreateSerializer
        return ProjectSerializer

    def get_permissions(self):
        if self.action == "create":
            return [permissions.IsAuthenticated(), CanCreateProjects()]
        return super().get_permissions()

    @transaction.atomic
    def perform_create(self, serializer):
        project = serializer.save(created_by=self.request.user)
        project.add_member(self.request.user, MemberRole.CREATOR)
        logger.info(f"Project {project.id} created by user {self.request.user.id}")

    @action(detail=True, methods=["post"])
    def members(self, request, pk=None):
        """Add or re-role a project member"""
        project = self.get_object()

        if not project.can_manage(request.user):
            return Response(
                {"error": "Only project creators and managers can manage members"},
                status=status.HTTP_403_FORBIDDEN
            )

        serializer = MemberActionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = User.objects.get(id=serializer.validated_data["user_id"])
        if user.id == project.created_by_id:
            return Response(
                {"error": "The project creator's role cannot be changed"},
                status=status.HTTP_400_BAD_REQUEST
            )

        project.add_member(user, serializer.validated_data["member_role"])
        logger.info(f"User {user.id} added to project {project.id} by user {request.user.id}")
        return Response(
            ProjectSerializer(project, context={"request": request}).data,
            status=status.HTTP_200_OK
        )
