# routers/notifications.py — In-app notifications for team members
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_actor, CurrentActor
from database import get_db_session
from models import Notification, utcnow

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


# --- Schemas ---

class NotificationOut(BaseModel):
    id: str
    type: str
    title: str
    message: Optional[str] = None
    task_id: Optional[str] = None
    triggered_by_id: Optional[str] = None
    board_name: Optional[str] = None
    is_read: bool
    read_at: Optional[str] = None
    created_at: str


def _notif_out(n: Notification) -> NotificationOut:
    return NotificationOut(
        id=n.id, type=n.type, title=n.title, message=n.message,
        task_id=n.task_id, triggered_by_id=n.triggered_by_id,
        board_name=n.board_name, is_read=bool(n.is_read),
        read_at=n.read_at.isoformat() if n.read_at else None,
        created_at=n.created_at.isoformat(),
    )


# ============================================================
# LIST & COUNT
# ============================================================

@router.get("", response_model=List[NotificationOut])
async def list_notifications(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db_session),
    actor: CurrentActor = Depends(get_current_actor),
):
    query = select(Notification).where(Notification.user_id == actor.id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    query = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
    result = await db.execute(query)
    return [_notif_out(n) for n in result.scalars().all()]


@router.get("/count")
async def notification_count(
    db: AsyncSession = Depends(get_db_session),
    actor: CurrentActor = Depends(get_current_actor),
):
    unread = (await db.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == actor.id,
            Notification.is_read.is_(False),
        )
    )).scalar() or 0
    return {"unread": unread}


# ============================================================
# MARK READ
# ============================================================

@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db_session),
    actor: CurrentActor = Depends(get_current_actor),
):
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == actor.id,
        )
    )
    notif = result.scalar_one_or_none()
    if not notif:
        raise HTTPException(404, "Notification not found")
    if not notif.is_read:
        notif.is_read = True
        notif.read_at = utcnow()
        await db.commit()
    return {"status": "read"}


@router.post("/read-all")
async def mark_all_read(
    db: AsyncSession = Depends(get_db_session),
    actor: CurrentActor = Depends(get_current_actor),
):
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == actor.id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return {"marked": result.rowcount or 0}
