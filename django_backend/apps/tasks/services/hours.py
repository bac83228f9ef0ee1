"""Per-assignee time tracking rules."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable

from .errors import TaskValidationError

MAX_ENTRY_HOURS = Decimal("10000")
_CENTS = Decimal("0.01")


def normalize_hours(raw: Any) -> Decimal:
    """
    Hours as a non-negative amount with two decimals. Missing or blank input
    counts as zero.

    >>> normalize_hours("1.005")
    Decimal('1.01')
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return Decimal("0.00")
    if isinstance(raw, bool):
        raise TaskValidationError("Hours spent must be a non-negative number")
    try:
        hours = Decimal(str(raw).strip())
    except InvalidOperation:
        raise TaskValidationError("Hours spent must be a non-negative number")
    if not hours.is_finite() or hours < 0:
        raise TaskValidationError("Hours spent must be a non-negative number")
    if hours > MAX_ENTRY_HOURS:
        raise TaskValidationError(f"Hours spent cannot exceed {MAX_ENTRY_HOURS}")
    return hours.quantize(_CENTS, rounding=ROUND_HALF_UP)


def summarize_hours(recorded: Dict[int, Decimal], assignee_ids: Iterable[int]) -> Dict[str, Any]:
    """
    Total and per-user hours of a task. Current assignees without an entry
    are listed with zero hours; entries are ordered by user id.
    """
    per_user = {user_id: normalize_hours(hours) for user_id, hours in recorded.items()}
    for user_id in assignee_ids:
        per_user.setdefault(user_id, Decimal("0.00"))

    per_assignee = [
        {"user_id": user_id, "hours": float(per_user[user_id])}
        for user_id in sorted(per_user)
    ]
    total = sum(per_user.values(), Decimal("0.00"))
    return {"total_hours": float(total), "per_assignee": per_assignee}
