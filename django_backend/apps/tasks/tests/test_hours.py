from decimal import Decimal

from django.test import SimpleTestCase

from apps.tasks.services.errors import TaskValidationError
from apps.tasks.services.hours import normalize_hours, summarize_hours


class NormalizeHoursTest(SimpleTestCase):
    def test_blank_means_zero(self):
        self.assertEqual(normalize_hours(None), Decimal("0.00"))
        self.assertEqual(normalize_hours("  "), Decimal("0.00"))

    def test_rounds_to_two_decimals(self):
        self.assertEqual(normalize_hours("1.005"), Decimal("1.01"))
        self.assertEqual(normalize_hours(2), Decimal("2.00"))
        self.assertEqual(normalize_hours(" 3.5 "), Decimal("3.50"))

    def test_invalid_values_are_rejected(self):
        for raw in (-1, "-0.5", "abc", "nan", "inf", True, "10000.01"):
            with self.subTest(raw=raw):
                with self.assertRaises(TaskValidationError):
                    normalize_hours(raw)

    def test_upper_bound_is_inclusive(self):
        self.assertEqual(normalize_hours("10000"), Decimal("10000.00"))


class SummarizeHoursTest(SimpleTestCase):
    def test_assignees_without_entries_report_zero(self):
        summary = summarize_hours({3: Decimal("1.50"), 1: Decimal("2")}, [1, 2, 3])

        self.assertEqual(summary["total_hours"], 3.5)
        self.assertEqual(
            summary["per_assignee"],
            [
                {"user_id": 1, "hours": 2.0},
                {"user_id": 2, "hours": 0.0},
                {"user_id": 3, "hours": 1.5},
            ],
        )

    def test_empty_task(self):
        self.assertEqual(summarize_hours({}, []), {"total_hours": 0.0, "per_assignee": []})
