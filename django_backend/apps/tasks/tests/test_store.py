import os
import shutil
from datetime import date

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.test import TestCase

from apps.tasks.cleanup import StorageTaskCleanup
from apps.tasks.models import Task, TaskAttachment
from apps.tasks.services.errors import NotFoundError
from apps.tasks.store import DjangoTaskStore

User = get_user_model()


class DjangoTaskStoreTest(TestCase):
    def setUp(self):
        self.store = DjangoTaskStore()
        self.user = User.objects.create_user(username="alice", password="x", display_name="Alice", role="hr")

    async def test_insert_and_fetch(self):
        record = await self.store.insert({
            "title": "Report",
            "assigned_to": [self.user.id],
            "tags": ["q1"],
            "deadline": date(2025, 1, 10),
            "created_by": self.user.id,
        })

        fetched = await self.store.get_task_by_id(record.id)
        self.assertEqual(fetched.title, "Report")
        self.assertEqual(fetched.assigned_to, [self.user.id])
        self.assertEqual(fetched.created_by, self.user.id)
        self.assertEqual(fetched.deadline, date(2025, 1, 10))

    async def test_missing_task(self):
        with self.assertRaises(NotFoundError):
            await self.store.get_task_by_id(404)
        with self.assertRaises(NotFoundError):
            await self.store.update_by_id(404, {"title": "x"})

    async def test_update_returns_fresh_row(self):
        task = await Task.objects.acreate(title="Old")
        updated = await self.store.update_by_id(task.id, {"title": "New", "status": "blocked"})
        self.assertEqual((updated.title, updated.status), ("New", "blocked"))

    async def test_subtasks_exclude_archived_and_keep_creation_order(self):
        parent = await Task.objects.acreate(title="Parent")
        first = await Task.objects.acreate(title="A", parent=parent)
        await Task.objects.acreate(title="B", parent=parent, archived=True)
        clones = await self.store.insert_many([
            {"title": "C", "parent_id": parent.id},
            {"title": "D", "parent_id": parent.id},
        ])

        children = await self.store.get_subtasks(parent.id)
        self.assertEqual([c.title for c in children], ["A", "C", "D"])
        self.assertEqual(children[0].id, first.id)
        self.assertEqual(len(clones), 2)

    async def test_delete(self):
        task = await Task.objects.acreate(title="Gone")
        self.assertTrue(await self.store.delete_task(task.id))
        self.assertFalse(await self.store.delete_task(task.id))

    async def test_users_by_ids_keep_requested_order(self):
        other = await User.objects.acreate(username="bob")
        users = await self.store.get_users_by_ids([other.id, 999, self.user.id])

        self.assertEqual([u.id for u in users], [other.id, self.user.id])
        self.assertEqual(users[1].name, "Alice")
        self.assertEqual(users[1].role, "hr")


class StorageTaskCleanupTest(TestCase):
    def setUp(self):
        # Task ids are reused between tests, start from an empty file tree
        shutil.rmtree(os.path.join(settings.MEDIA_ROOT, settings.TASK_FILES_PREFIX), ignore_errors=True)
        self.cleanup = StorageTaskCleanup()
        self.source = Task.objects.create(title="Monthly close")
        self.target = Task.objects.create(title="Monthly close")
        self.attachment = TaskAttachment.objects.create(
            task=self.source, file=ContentFile(b"ledger", name="ledger.csv"), file_name="ledger.csv",
        )
        self.loose_file = default_storage.save(
            f"task-files/{self.source.pk}/drafts/notes.txt", ContentFile(b"notes")
        )

    async def test_copy_attachments_to_task(self):
        copied = await self.cleanup.copy_attachments_to_task(self.source.id, self.target.id, None)

        self.assertEqual(copied, 1)
        clone = await TaskAttachment.objects.aget(task_id=self.target.id)
        self.assertEqual(clone.file_name, "ledger.csv")
        self.assertNotEqual(clone.file.name, self.attachment.file.name)
        self.assertTrue(clone.file.name.startswith(f"task-files/{self.target.id}/"))
        self.assertTrue(default_storage.exists(self.attachment.file.name))

    async def test_copy_skips_unreadable_files(self):
        default_storage.delete(self.attachment.file.name)

        with self.assertLogs("apps.tasks.cleanup", level="ERROR"):
            copied = await self.cleanup.copy_attachments_to_task(self.source.id, self.target.id)

        self.assertEqual(copied, 0)
        self.assertFalse(await TaskAttachment.objects.filter(task_id=self.target.id).aexists())

    async def test_delete_attachments_and_stored_files(self):
        file_name = self.attachment.file.name

        self.assertEqual(await self.cleanup.delete_attachments_for_task(self.source.id), 1)
        self.assertFalse(default_storage.exists(file_name))
        self.assertEqual(await self.cleanup.delete_stored_files_for_task(self.source.id), 1)
        self.assertFalse(default_storage.exists(self.loose_file))

    async def test_nothing_to_clean(self):
        cleanup = self.cleanup
        self.assertEqual(await cleanup.delete_attachments_for_task(12345), 0)
        self.assertEqual(await cleanup.delete_stored_files_for_task(12345), 0)
