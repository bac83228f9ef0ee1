from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional


@dataclass
class TaskRecord:
    """Plain task row exchanged between the engine and its collaborators"""

    id: int
    title: str
    description: Optional[str] = None
    priority: str = "medium"
    status: str = "pending"
    deadline: Optional[date] = None
    project_id: Optional[int] = None
    assigned_to: List[int] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    parent_id: Optional[int] = None
    archived: bool = False
    recurrence_freq: Optional[str] = None
    recurrence_interval: int = 1
    recurrence_series_id: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class UserRecord:
    id: int
    name: str = ""
    email: str = ""
    role: str = "staff"
    department: Optional[str] = None
    hierarchy: Optional[int] = None
    division: Optional[str] = None


@dataclass
class FieldChange:
    """One human-readable entry of a task change list"""

    field: str
    label: str
    before: str
    after: str

    def to_dict(self):
        return {
            "field": self.field,
            "label": self.label,
            "before": self.before,
            "after": self.after,
        }
