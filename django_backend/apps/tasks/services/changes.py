import logging
from typing import Any, Iterable, List, Optional

from .contracts import TaskNotifier
from .dispatch import BackgroundDispatcher
from .normalization import normalize_assignee_ids, parse_deadline
from .records import FieldChange, TaskRecord

logger = logging.getLogger(__name__)

TRACKED_UPDATE_FIELDS = (
    "title",
    "description",
    "priority",
    "status",
    "deadline",
    "project_id",
    "archived",
    "tags",
)

FIELD_LABELS = {
    "title": "Title",
    "description": "Description",
    "priority": "Priority",
    "status": "Status",
    "deadline": "Deadline",
    "project_id": "Project",
    "archived": "Archived",
    "tags": "Tags",
}

DESCRIPTION_PREVIEW_LENGTH = 120


def _tag_list(value: Any) -> List[str]:
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    return [str(t).strip() for t in items if t is not None and str(t).strip()]


def comparable_value(field: str, value: Any) -> Any:
    """Normalized form of a field value used only for equality checks"""
    if field in ("title", "description"):
        return "" if value is None else str(value).strip()
    if field in ("priority", "status"):
        return None if value is None else str(value).lower()
    if field == "deadline":
        if not value:
            return None
        parsed = parse_deadline(value)
        return parsed.isoformat() if parsed else str(value)
    if field == "project_id":
        return None if value is None else int(value)
    if field == "archived":
        return bool(value)
    if field == "tags":
        return "|".join(sorted(t.lower() for t in _tag_list(value)))
    return value


def display_value(field: str, value: Any) -> str:
    """Human-facing rendering of a field value for notifications"""
    if value is None:
        return "None"
    if field == "archived":
        return "Archived" if value else "Active"
    if field == "deadline":
        parsed = parse_deadline(value)
        return parsed.isoformat() if parsed else str(value)
    if field == "tags":
        tags = _tag_list(value)
        return ", ".join(tags) if tags else "None"
    if field == "description":
        text = str(value).strip()
        if not text:
            return "None"
        if len(text) > DESCRIPTION_PREVIEW_LENGTH:
            return text[: DESCRIPTION_PREVIEW_LENGTH - 3] + "..."
        return text
    text = str(value)
    return text if text.strip() else "None"


def diff_tasks(
    previous: TaskRecord,
    updated: TaskRecord,
    changed_field_names: Optional[Iterable[str]] = None,
) -> List[FieldChange]:
    """
    Field-by-field change list between two snapshots of the same task.

    Only tracked fields are considered, narrowed to ``changed_field_names``
    when given, and only fields whose normalized values differ are reported.
    """
    wanted = set(changed_field_names or ())
    changes = []
    for field in TRACKED_UPDATE_FIELDS:
        if wanted and field not in wanted:
            continue
        before = getattr(previous, field, None)
        after = getattr(updated, field, None)
        if comparable_value(field, before) == comparable_value(field, after):
            continue
        changes.append(
            FieldChange(
                field=field,
                label=FIELD_LABELS.get(field, field),
                before=display_value(field, before),
                after=display_value(field, after),
            )
        )
    return changes


class ChangeNotifier:
    """Computes the change list of an update and hands it to the notifier"""

    def __init__(self, notifier: TaskNotifier, dispatcher: BackgroundDispatcher):
        self.notifier = notifier
        self.dispatcher = dispatcher

    def dispatch(
        self,
        previous: Optional[TaskRecord],
        updated: Optional[TaskRecord],
        changed_field_names: Optional[Iterable[str]] = None,
        actor_id: Optional[int] = None,
    ) -> List[FieldChange]:
        if previous is None or updated is None:
            return []

        changes = diff_tasks(previous, updated, changed_field_names)
        if not changes:
            return []

        source = updated.assigned_to if updated.assigned_to is not None else previous.assigned_to
        assignee_ids = normalize_assignee_ids(source)
        if not assignee_ids:
            logger.info(f"Task {updated.id} changed but has no assignees to notify")
            return changes

        self.dispatcher.spawn(
            f"task {updated.id} update notification",
            self.notifier.notify_update,
            task=updated,
            changes=changes,
            updated_by_id=actor_id,
            assignee_ids=assignee_ids,
        )
        return changes
