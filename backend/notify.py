# notify.py — Notification dispatch for task events
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models import Notification

logger = logging.getLogger("dubflow.notify")

# (db, recipient_id, type, task_id, actor_id, title, message, board_name)
Dispatcher = Callable[..., Awaitable[None]]


async def create_notification(
    db: AsyncSession,
    recipient_id: str,
    notification_type: str,
    task_id: Optional[str],
    actor_id: Optional[str],
    title: str,
    message: Optional[str] = None,
    board_name: Optional[str] = None,
) -> None:
    """Default dispatcher: store an in-app notification row."""
    db.add(Notification(
        user_id=recipient_id,
        type=notification_type,
        task_id=task_id,
        triggered_by_id=actor_id,
        title=title,
        message=message,
        board_name=board_name,
    ))


async def dispatch_safely(dispatcher: Dispatcher, db: AsyncSession, **kwargs) -> bool:
    """Fire-and-forget: a failing dispatcher never aborts a transition."""
    try:
        await dispatcher(db, **kwargs)
        return True
    except Exception:
        logger.warning(
            f"Notification dispatch failed for {kwargs.get('recipient_id')} "
            f"on task {kwargs.get('task_id')}",
            exc_info=True,
        )
        return False
