from datetime import date

from django.test import SimpleTestCase

from apps.tasks.services.recurrence import RecurrenceSpawner, add_months, next_due_date
from .fakes import FakeCleanup, FakeTaskStore


class NextDueDateTest(SimpleTestCase):
    def test_daily_weekly_monthly(self):
        self.assertEqual(next_due_date("2025-01-10", "daily", 3), date(2025, 1, 13))
        self.assertEqual(next_due_date("2025-01-10", "weekly", 2), date(2025, 1, 24))
        self.assertEqual(next_due_date("2025-01-10", "monthly", 1), date(2025, 2, 10))
        self.assertEqual(next_due_date("2025-11-10", "monthly", 3), date(2026, 2, 10))

    def test_month_end_is_clamped(self):
        self.assertEqual(add_months(date(2025, 1, 31), 1), date(2025, 2, 28))
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))

    def test_missing_or_unparseable_deadline(self):
        self.assertIsNone(next_due_date(None, "daily", 1))
        self.assertIsNone(next_due_date("someday", "weekly", 1))


class RecurrenceSpawnerTest(SimpleTestCase):
    def setUp(self):
        self.store = FakeTaskStore()
        self.spawner = RecurrenceSpawner(self.store)
        self.original = self.store.add(
            title="Weekly sync",
            status="in_progress",
            deadline=date(2025, 1, 10),
            project_id=4,
            assigned_to=[2, 3],
            tags=["ops"],
            recurrence_freq="weekly",
            recurrence_interval=2,
        )

    async def _complete(self, task_id):
        before = await self.store.get_task_by_id(task_id)
        after = await self.store.update_by_id(task_id, {"status": "completed"})
        return await self.spawner.on_task_updated(before, after)

    async def test_completion_spawns_next_instance(self):
        spawned = await self._complete(self.original.id)

        self.assertEqual(spawned.status, "pending")
        self.assertEqual(spawned.deadline, date(2025, 1, 24))
        self.assertEqual(spawned.title, "Weekly sync")
        self.assertEqual(spawned.assigned_to, [2, 3])
        self.assertEqual(spawned.tags, ["ops"])
        self.assertEqual(spawned.project_id, 4)
        self.assertIsNone(spawned.parent_id)
        self.assertEqual((spawned.recurrence_freq, spawned.recurrence_interval), ("weekly", 2))

    async def test_series_id_is_minted_and_backfilled(self):
        spawned = await self._complete(self.original.id)
        original = await self.store.get_task_by_id(self.original.id)

        self.assertTrue(original.recurrence_series_id)
        self.assertEqual(spawned.recurrence_series_id, original.recurrence_series_id)

    async def test_existing_series_id_is_reused(self):
        await self.store.update_by_id(self.original.id, {"recurrence_series_id": "series-1"})
        spawned = await self._complete(self.original.id)
        self.assertEqual(spawned.recurrence_series_id, "series-1")

    async def test_already_completed_task_does_not_spawn(self):
        await self._complete(self.original.id)
        count = len(self.store.tasks)

        spawned = await self._complete(self.original.id)

        self.assertIsNone(spawned)
        self.assertEqual(len(self.store.tasks), count)

    async def test_non_recurring_task_does_not_spawn(self):
        plain = self.store.add(title="Once", status="pending")
        self.assertIsNone(await self._complete(plain.id))

    async def test_subtasks_are_cloned_in_one_batch(self):
        own = self.store.add(title="Child A", parent_id=self.original.id, deadline=date(2025, 1, 8))
        inherited = self.store.add(title="Child B", parent_id=self.original.id)
        self.store.add(title="Archived child", parent_id=self.original.id, archived=True)

        spawned = await self._complete(self.original.id)

        self.assertEqual(len(self.store.insert_many_calls), 1)
        clones = await self.store.get_subtasks(spawned.id)
        self.assertEqual([c.title for c in clones], [own.title, inherited.title])
        self.assertEqual(clones[0].deadline, date(2025, 1, 22))
        self.assertEqual(clones[1].deadline, date(2025, 1, 24))
        for clone in clones:
            self.assertEqual(clone.status, "pending")
            self.assertEqual(clone.recurrence_series_id, spawned.recurrence_series_id)

    async def test_clone_failure_keeps_new_parent(self):
        self.store.add(title="Child", parent_id=self.original.id)
        self.store.fail_insert_many = True

        with self.assertLogs("apps.tasks.services.recurrence", level="ERROR"):
            spawned = await self._complete(self.original.id)

        self.assertIn(spawned.id, self.store.tasks)

    async def test_new_instance_inherits_attachments(self):
        cleanup = FakeCleanup()
        self.spawner = RecurrenceSpawner(self.store, cleanup)
        await self.store.update_by_id(self.original.id, {"created_by": 2})

        spawned = await self._complete(self.original.id)

        self.assertEqual(cleanup.calls, [("copy", self.original.id, spawned.id, 2)])

    async def test_attachment_copy_failure_keeps_new_instance(self):
        self.spawner = RecurrenceSpawner(self.store, FakeCleanup(fail_copy=True))
        self.store.add(title="Child", parent_id=self.original.id)

        with self.assertLogs("apps.tasks.services.recurrence", level="ERROR"):
            spawned = await self._complete(self.original.id)

        self.assertIn(spawned.id, self.store.tasks)
        self.assertEqual(len(await self.store.get_subtasks(spawned.id)), 1)
