import logging
import posixpath
from typing import Optional

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.files.storage import default_storage

from .models import TaskAttachment
from .services.contracts import TaskCleanup
from .services.errors import CollaboratorFailure

logger = logging.getLogger(__name__)


def task_files_prefix(task_id: int) -> str:
    return f"{settings.TASK_FILES_PREFIX}/{task_id}"


def _remove_tree(storage, path: str) -> int:
    try:
        directories, files = storage.listdir(path)
    except FileNotFoundError:
        return 0
    removed = 0
    for name in files:
        storage.delete(f"{path}/{name}")
        removed += 1
    for name in directories:
        removed += _remove_tree(storage, f"{path}/{name}")
    return removed


class StorageTaskCleanup(TaskCleanup):
    """
    Attachment rows and task files kept in Django storage.

    Storage backends are synchronous, so every storage call runs through
    ``sync_to_async`` and the event loop is never blocked on file I/O.
    """

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    async def delete_attachments_for_task(self, task_id: int) -> int:
        removed = 0
        try:
            async for attachment in TaskAttachment.objects.filter(task_id=task_id):
                if attachment.file:
                    await sync_to_async(self.storage.delete)(attachment.file.name)
                await attachment.adelete()
                removed += 1
        except OSError as e:
            raise CollaboratorFailure(f"Could not delete attachments of task {task_id}: {e}")
        logger.info(f"Deleted {removed} attachments of task {task_id}")
        return removed

    async def delete_stored_files_for_task(self, task_id: int) -> int:
        try:
            removed = await sync_to_async(_remove_tree)(self.storage, task_files_prefix(task_id))
        except OSError as e:
            raise CollaboratorFailure(f"Could not delete stored files of task {task_id}: {e}")
        logger.info(f"Deleted {removed} stored files of task {task_id}")
        return removed

    async def copy_attachments_to_task(
        self, source_task_id: int, dest_task_id: int, user_id: Optional[int] = None
    ) -> int:
        copied = 0
        sources = TaskAttachment.objects.filter(task_id=source_task_id).order_by("created_at", "id")
        async for attachment in sources:
            if not attachment.file:
                continue
            try:
                await sync_to_async(self._copy_attachment)(attachment, dest_task_id, user_id)
            except OSError as e:
                # One unreadable file must not stop the rest
                logger.error(f"Could not copy attachment {attachment.id} to task {dest_task_id}: {e}")
                continue
            copied += 1
        logger.info(f"Copied {copied} attachments of task {source_task_id} to task {dest_task_id}")
        return copied

    def _copy_attachment(self, attachment: TaskAttachment, dest_task_id: int, user_id: Optional[int]):
        name = posixpath.basename(attachment.file.name)
        with self.storage.open(attachment.file.name, "rb") as source:
            stored_name = self.storage.save(f"{task_files_prefix(dest_task_id)}/{name}", source)
        return TaskAttachment.objects.create(
            task_id=dest_task_id,
            file=stored_name,
            file_name=attachment.file_name,
            uploaded_by_id=user_id or attachment.uploaded_by_id,
        )
