import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.tasks.services.errors import CollaboratorFailure, TaskError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """Render task engine errors as ``{"error": message}`` with their status code"""
    if isinstance(exc, TaskError) and not isinstance(exc, CollaboratorFailure):
        logger.info(f"{type(exc).__name__}: {exc.message}")
        return Response({"error": exc.message}, status=exc.status_code)
    return exception_handler(exc, context)
