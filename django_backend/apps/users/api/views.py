from django.contrib.auth import get_user_model
from django.http import Http404
from rest_framework import permissions, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.tasks.services.access import visible_users
from .serializers import UserSerializer

User = get_user_model()


class UserViewSet(viewsets.ReadOnlyModelViewSet):
    """Users the requester may see under the role model"""

    queryset = User.objects.filter(is_active=True).order_by("id")
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated]

    def _visible(self, users):
        requester = self.request.user.to_record()
        visible_ids = {r.id for r in visible_users(requester, [u.to_record() for u in users])}
        return [u for u in users if u.id in visible_ids]

    def list(self, request, *args, **kwargs):
        users = self._visible(self.filter_queryset(self.get_queryset()))
        page = self.paginate_queryset(users)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(users, many=True).data)

    def get_object(self):
        user = super().get_object()
        if not self._visible([user]):
            raise Http404
        return user

    @action(detail=False, methods=["get"])
    def me(self, request):
        return Response(UserSerializer(request.user).data)
