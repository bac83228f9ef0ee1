from datetime import datetime, timezone

from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from apps.common.events import EventPublisherFactory, TaskEvent
from apps.common.events.memory_publisher import MemoryEventPublisher
from apps.common.exceptions import api_exception_handler
from apps.tasks.producer.events import TaskEventType, publish_task_assigned
from apps.tasks.services.errors import (
    CollaboratorFailure,
    NotFoundError,
    TaskPermissionError,
    TaskValidationError,
)
from apps.tasks.services.records import TaskRecord


class TaskEventTest(SimpleTestCase):
    def test_to_dict(self):
        stamp = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)
        event = TaskEvent("task_updated", task_id=3, actor_id=7, data={"title": "Report"}, occurred_at=stamp)

        payload = event.to_dict()
        self.assertEqual(payload["event_type"], "task_updated")
        self.assertEqual(payload["task_id"], 3)
        self.assertEqual(payload["actor_id"], 7)
        self.assertEqual(payload["occurred_at"], "2025-01-10T12:00:00+00:00")
        self.assertEqual(payload["data"], {"title": "Report"})
        self.assertEqual(event.key, "3")

    def test_events_get_distinct_ids(self):
        self.assertNotEqual(TaskEvent("task_deleted", 1).event_id, TaskEvent("task_deleted", 1).event_id)


class EventPublisherFactoryTest(SimpleTestCase):
    def setUp(self):
        EventPublisherFactory.reset_publisher()

    def tearDown(self):
        EventPublisherFactory.reset_publisher()

    def test_memory_publisher_is_shared(self):
        publisher = EventPublisherFactory.get_publisher()
        self.assertIsInstance(publisher, MemoryEventPublisher)
        self.assertIs(publisher, EventPublisherFactory.get_publisher())

    def test_memory_publisher_filters_by_topic_and_type(self):
        publisher = EventPublisherFactory.get_publisher()
        publisher.publish("task-events", TaskEvent("task_deleted", 5))
        publisher.publish("task-events", TaskEvent("task_updated", 5))
        publisher.publish("other", TaskEvent("task_deleted", 6))

        self.assertEqual(len(publisher.get_events("task-events")), 2)
        deleted = publisher.get_events("task-events", "task_deleted")
        self.assertEqual([e["key"] for e in deleted], ["5"])

        publisher.clear_events()
        self.assertEqual(publisher.get_events("other"), [])

    def test_publish_task_assigned_carries_task_snapshot(self):
        task = TaskRecord(id=9, title="Audit", status="pending", project_id=2, assigned_to=[4, 5])

        self.assertTrue(publish_task_assigned(task, 4, [5], "task_assignment"))

        event, = EventPublisherFactory.get_publisher().get_events("task-events")
        self.assertEqual(event["event_type"], TaskEventType.ASSIGNED.value)
        self.assertEqual(event["actor_id"], 4)
        self.assertEqual(event["data"]["assignee_ids"], [5])
        self.assertEqual(event["data"]["assigned_to"], [4, 5])
        self.assertEqual(event["data"]["project_id"], 2)

    @override_settings(EVENT_PUBLISHER_TYPE="carrier-pigeon")
    def test_unknown_publisher_type(self):
        with self.assertRaises(ValueError):
            EventPublisherFactory.get_publisher()


class ApiExceptionHandlerTest(SimpleTestCase):
    def test_engine_errors_map_to_status_codes(self):
        cases = [
            (TaskValidationError("title is required"), status.HTTP_400_BAD_REQUEST),
            (TaskPermissionError("nope"), status.HTTP_403_FORBIDDEN),
            (NotFoundError("Task 4 not found"), status.HTTP_404_NOT_FOUND),
        ]
        for exc, code in cases:
            with self.subTest(exc=type(exc).__name__):
                response = api_exception_handler(exc, {})
                self.assertEqual(response.status_code, code)
                self.assertEqual(response.data, {"error": exc.message})

    def test_collaborator_failures_are_not_rendered(self):
        self.assertIsNone(api_exception_handler(CollaboratorFailure("disk"), {}))

    def test_falls_back_to_rest_framework(self):
        response = api_exception_handler(NotAuthenticated(), {})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
