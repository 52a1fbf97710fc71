# activity.py — Append-only activity log writer
from datetime import date, datetime
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models import ActivityLog, ActivityType


def as_text(value) -> Optional[str]:
    """Render a field value the way the activity feed stores it."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return str(value)


def record_activity(
    db: AsyncSession, task_id: str, user_id: Optional[str], activity_type: ActivityType,
    field: str = None, old_value=None, new_value=None,
    context_board: str = None, context_phase: str = None,
) -> ActivityLog:
    """Queue an activity entry on the session; ids follow insertion order"""
    entry = ActivityLog(
        task_id=task_id,
        user_id=user_id,
        type=activity_type.value,
        field=field,
        old_value=as_text(old_value),
        new_value=as_text(new_value),
        context_board=context_board,
        context_phase=context_phase,
    )
    db.add(entry)
    return entry
