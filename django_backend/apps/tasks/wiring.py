"""Assembles the task engine with its Django collaborators for the HTTP layer."""

from typing import Optional

from asgiref.sync import async_to_sync

from apps.projects.directory import DjangoProjectDirectory
from .cleanup import StorageTaskCleanup
from .notifier import CeleryTaskNotifier
from .services.access import AccessResolver
from .services.dispatch import BackgroundDispatcher
from .services.engine import TaskMutationEngine
from .store import DjangoTaskStore


def build_task_engine(dispatcher: Optional[BackgroundDispatcher] = None) -> TaskMutationEngine:
    return TaskMutationEngine(
        store=DjangoTaskStore(),
        notifier=CeleryTaskNotifier(),
        projects=DjangoProjectDirectory(),
        cleanup=StorageTaskCleanup(),
        dispatcher=dispatcher,
    )


def build_access_resolver() -> AccessResolver:
    return AccessResolver(DjangoProjectDirectory())


def run_engine(operation: str, *args, **kwargs):
    """
    Run one engine operation from synchronous code.

    Detached notifications are drained before the event loop goes away; they
    only queue Celery jobs, so this does not wait for delivery.
    """

    async def _run():
        engine = build_task_engine()
        try:
            return await getattr(engine, operation)(*args, **kwargs)
        finally:
            await engine.dispatcher.drain()

    return async_to_sync(_run)()


def accessible_project_ids(user):
    resolver = build_access_resolver()
    return async_to_sync(resolver.accessible_project_ids)(
        user.id, user.role, user.hierarchy, user.division or None
    )
