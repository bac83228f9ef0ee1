from datetime import date

from django.test import SimpleTestCase

from apps.tasks.services.errors import TaskValidationError
from apps.tasks.services.normalization import (
    MAX_ASSIGNEES,
    check_assignee_bounds,
    coerce_user_id,
    extract_recurrence,
    normalize_assignee_ids,
    normalize_deadline,
    normalize_flag,
    normalize_frequency,
    normalize_interval,
    normalize_priority,
    normalize_status,
    normalize_tags,
    normalize_title,
    parse_deadline,
)


class AssigneeNormalizationTest(SimpleTestCase):
    def test_mixed_ids_are_deduped_in_order(self):
        self.assertEqual(normalize_assignee_ids([3, "3", "4", None]), [3, 4])

    def test_normalization_is_idempotent(self):
        once = normalize_assignee_ids([3, "3", "4", None, None])
        self.assertEqual(once, [3, 4])
        self.assertEqual(normalize_assignee_ids(once), [3, 4])

    def test_comma_separated_string(self):
        self.assertEqual(normalize_assignee_ids("5, 2,5,,x"), [5, 2])

    def test_single_scalar(self):
        self.assertEqual(normalize_assignee_ids(9), [9])

    def test_non_positive_and_non_finite_are_dropped(self):
        self.assertEqual(normalize_assignee_ids([0, -1, float("nan"), float("inf"), "", 2]), [2])

    def test_coerce_user_id(self):
        self.assertEqual(coerce_user_id("12"), 12)
        self.assertEqual(coerce_user_id(4.0), 4)
        self.assertIsNone(coerce_user_id(True))
        self.assertIsNone(coerce_user_id("abc"))
        self.assertIsNone(coerce_user_id(None))

    def test_bounds(self):
        check_assignee_bounds([1])
        check_assignee_bounds(list(range(1, MAX_ASSIGNEES + 1)))
        with self.assertRaises(TaskValidationError):
            check_assignee_bounds([])
        with self.assertRaises(TaskValidationError):
            check_assignee_bounds(list(range(1, MAX_ASSIGNEES + 2)))


class FieldNormalizationTest(SimpleTestCase):
    def test_tags_trimmed_deduped_and_empties_dropped(self):
        self.assertEqual(normalize_tags([" ops ", "ops", "", None, "docs"]), ["ops", "docs"])
        self.assertEqual(normalize_tags("a, b,,a"), ["a", "b"])
        self.assertEqual(normalize_tags(None), [])

    def test_unknown_status_becomes_pending(self):
        self.assertEqual(normalize_status("weird"), "pending")
        self.assertEqual(normalize_status(None), "pending")
        self.assertEqual(normalize_status(" Completed "), "completed")

    def test_priority_lower_cased_with_default(self):
        self.assertEqual(normalize_priority("HIGH"), "high")
        self.assertEqual(normalize_priority(None), "medium")
        self.assertEqual(normalize_priority("  "), "medium")

    def test_title_is_trimmed_and_required(self):
        self.assertEqual(normalize_title("  Design  "), "Design")
        for blank in (None, "", "   "):
            with self.assertRaises(TaskValidationError):
                normalize_title(blank)

    def test_title_length_is_bounded(self):
        self.assertEqual(normalize_title("x" * 200), "x" * 200)
        self.assertEqual(normalize_title("  " + "x" * 200 + "  "), "x" * 200)
        with self.assertRaises(TaskValidationError):
            normalize_title("x" * 201)

    def test_flag(self):
        self.assertTrue(normalize_flag("true"))
        self.assertTrue(normalize_flag(1))
        self.assertFalse(normalize_flag("false"))
        self.assertFalse(normalize_flag("0"))
        self.assertFalse(normalize_flag(None))


class DeadlineNormalizationTest(SimpleTestCase):
    def test_iso_date_and_datetime(self):
        self.assertEqual(parse_deadline("2025-01-10"), date(2025, 1, 10))
        self.assertEqual(parse_deadline("2025-01-10T08:30:00Z"), date(2025, 1, 10))
        self.assertEqual(parse_deadline(date(2025, 1, 10)), date(2025, 1, 10))

    def test_lenient_parse_returns_none(self):
        self.assertIsNone(parse_deadline("soon"))
        self.assertIsNone(parse_deadline("2025-02-30"))
        self.assertIsNone(parse_deadline(None))

    def test_strict_deadline(self):
        self.assertIsNone(normalize_deadline(""))
        self.assertEqual(normalize_deadline("2025-03-01"), date(2025, 3, 1))
        with self.assertRaises(TaskValidationError):
            normalize_deadline("next tuesday")


class RecurrenceNormalizationTest(SimpleTestCase):
    def test_frequency(self):
        self.assertEqual(normalize_frequency("Weekly"), "weekly")
        self.assertIsNone(normalize_frequency("none"))
        self.assertIsNone(normalize_frequency(""))
        with self.assertRaisesMessage(TaskValidationError, "Invalid recurrence frequency"):
            normalize_frequency("hourly")

    def test_interval(self):
        self.assertEqual(normalize_interval(None), 1)
        self.assertEqual(normalize_interval("3"), 3)
        for bad in (0, -2, 1.5, "x", True):
            with self.assertRaises(TaskValidationError):
                normalize_interval(bad)

    def test_flat_keys_only_return_what_was_supplied(self):
        self.assertEqual(extract_recurrence({"title": "x"}), {})
        self.assertEqual(extract_recurrence({"recurrence_interval": 2}), {"recurrence_interval": 2})

    def test_nested_object(self):
        self.assertEqual(
            extract_recurrence({"recurrence": {"freq": "daily", "interval": 3}}),
            {"recurrence_freq": "daily", "recurrence_interval": 3},
        )
        self.assertEqual(
            extract_recurrence({"recurrence": None}),
            {"recurrence_freq": None, "recurrence_interval": 1},
        )
        with self.assertRaises(TaskValidationError):
            extract_recurrence({"recurrence": "weekly"})
