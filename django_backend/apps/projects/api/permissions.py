from rest_framework.permissions import BasePermission


class CanCreateProjects(BasePermission):
    message = "Only managers and admins can create projects"

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.can_create_projects)
