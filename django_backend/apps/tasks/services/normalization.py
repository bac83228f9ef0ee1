"""
Normalization boundary for loose task input.

Every value coming from a request (strings, mixed arrays, numbers sent as text)
goes through these functions before it reaches the engine, so the engine only
ever sees canonical values. All functions are pure.
"""

import math
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from django.utils.dateparse import parse_date, parse_datetime

from apps.tasks.choices import RecurrenceFrequency, TaskStatus
from .errors import TaskValidationError

MAX_ASSIGNEES = 5
MAX_TITLE_LENGTH = 200
DEFAULT_PRIORITY = "medium"
DEFAULT_STATUS = TaskStatus.PENDING.value

_FALSE_STRINGS = {"", "0", "false", "no", "off", "none", "null"}


def _as_list(raw: Any) -> list:
    if raw is None:
        return []
    if isinstance(raw, str):
        return raw.split(",")
    if isinstance(raw, (list, tuple, set, frozenset)):
        return list(raw)
    return [raw]


def coerce_user_id(value: Any) -> Optional[int]:
    """Turn an id-ish value into a positive int, or None when it is not one"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    number = int(number)
    return number if number > 0 else None


def normalize_assignee_ids(raw: Any) -> List[int]:
    """
    Dedupe and coerce assignee ids, keeping the order of first occurrence.

    >>> normalize_assignee_ids([3, "3", "4", None])
    [3, 4]
    """
    ids: List[int] = []
    for value in _as_list(raw):
        user_id = coerce_user_id(value)
        if user_id is not None and user_id not in ids:
            ids.append(user_id)
    return ids


def normalize_tags(raw: Any) -> List[str]:
    tags: List[str] = []
    for value in _as_list(raw):
        if value is None:
            continue
        tag = str(value).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def normalize_status(raw: Any) -> str:
    requested = str(raw if raw is not None else DEFAULT_STATUS).strip().lower()
    return requested if requested in TaskStatus.values else DEFAULT_STATUS


def normalize_priority(raw: Any) -> str:
    if raw is None:
        return DEFAULT_PRIORITY
    return str(raw).strip().lower() or DEFAULT_PRIORITY


def normalize_title(raw: Any) -> str:
    title = str(raw).strip() if raw is not None else ""
    if not title:
        raise TaskValidationError("title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise TaskValidationError(f"title cannot exceed {MAX_TITLE_LENGTH} characters")
    return title


def normalize_text(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    return str(raw).strip() or None


def normalize_flag(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() not in _FALSE_STRINGS
    return bool(raw)


def normalize_optional_id(raw: Any, field_name: str) -> Optional[int]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    value = coerce_user_id(raw)
    if value is None:
        raise TaskValidationError(f"{field_name} must be a positive integer")
    return value


def parse_deadline(value: Any) -> Optional[date]:
    """Lenient date parsing: anything unparseable becomes None"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        parsed = parse_date(text)
    except ValueError:
        return None
    if parsed is not None:
        return parsed
    try:
        moment = parse_datetime(text)
    except ValueError:
        return None
    return moment.date() if moment else None


def normalize_deadline(raw: Any) -> Optional[date]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    deadline = parse_deadline(raw)
    if deadline is None:
        raise TaskValidationError("deadline must be a valid date")
    return deadline


def normalize_interval(raw: Any) -> int:
    if raw is None or raw == "":
        return 1
    if isinstance(raw, bool):
        raise TaskValidationError("recurrence interval must be a positive integer")
    try:
        number = float(raw)
    except (TypeError, ValueError):
        raise TaskValidationError("recurrence interval must be a positive integer")
    if not math.isfinite(number) or number < 1 or number != int(number):
        raise TaskValidationError("recurrence interval must be a positive integer")
    return int(number)


def normalize_frequency(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    freq = str(raw).strip().lower()
    if freq in ("", "none"):
        return None
    if freq not in RecurrenceFrequency.values:
        raise TaskValidationError(f"Invalid recurrence frequency: {raw}")
    return freq


def normalize_recurrence(freq: Any, interval: Any = None) -> Tuple[Optional[str], int]:
    return normalize_frequency(freq), normalize_interval(interval)


def extract_recurrence(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Pull recurrence settings out of a payload.

    Accepts either flat ``recurrence_freq`` / ``recurrence_interval`` keys or a
    nested ``recurrence`` object (``{"freq": ..., "interval": ...}``, or a
    falsy value to switch recurrence off). Only supplied keys are returned.
    """
    if "recurrence" in data:
        nested = data.get("recurrence")
        if not nested:
            return {"recurrence_freq": None, "recurrence_interval": 1}
        if not isinstance(nested, dict):
            raise TaskValidationError("recurrence must be an object with freq and interval")
        freq, interval = normalize_recurrence(nested.get("freq"), nested.get("interval"))
        return {"recurrence_freq": freq, "recurrence_interval": interval}

    values: Dict[str, Any] = {}
    if "recurrence_freq" in data:
        values["recurrence_freq"] = normalize_frequency(data.get("recurrence_freq"))
    if "recurrence_interval" in data:
        values["recurrence_interval"] = normalize_interval(data.get("recurrence_interval"))
    return values


def check_assignee_bounds(assignees: List[int]) -> None:
    if not assignees:
        raise TaskValidationError("A task must have at least one assignee.")
    if len(assignees) > MAX_ASSIGNEES:
        raise TaskValidationError(f"A task can have at most {MAX_ASSIGNEES} assignees.")
