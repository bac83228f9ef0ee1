from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import NotificationViewSet, TaskCommentViewSet, TaskViewSet

router = DefaultRouter()
router.register(r"tasks", TaskViewSet, basename="tasks")
router.register(r"notifications", NotificationViewSet, basename="notifications")
router.register(r"comments", TaskCommentViewSet, basename="comments")

urlpatterns = [
    path("", include(router.urls)),
]
