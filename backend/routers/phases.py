# routers/phases.py — Phase progression, bulk routing, activity and viewers
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_actor, require_project_manager, CurrentActor
from database import get_db_session
from errors import PhaseRoutingError
from models import ActivityLog, Task, TaskViewer, TeamMember
from phase_catalog import catalogue
from phase_engine import ProgressionEngine

router = APIRouter(prefix="/api/v1/phases", tags=["Phase Progression"])
logger = logging.getLogger("dubflow.api.phases")


# ============================================================
# SCHEMAS
# ============================================================

class PhaseOut(BaseModel):
    key: str
    label: str
    position: int


class AdvanceOut(BaseModel):
    moved: bool
    task_id: str
    from_phase: Optional[str] = None
    to_phase: Optional[str] = None
    phase_label: Optional[str] = None
    board_name: Optional[str] = None
    message: str


class BulkMoveRequest(BaseModel):
    task_ids: List[str] = Field(..., min_length=1, max_length=500)
    target_phase: str = Field(..., min_length=1, max_length=100)


class BulkMoveOut(BaseModel):
    count: int
    target_phase: str
    phase_label: Optional[str] = None
    board_name: Optional[str] = None
    task_ids: List[str] = []


class ActivityOut(BaseModel):
    id: int
    type: str
    field: Optional[str] = None
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    user_id: Optional[str] = None
    context_board: Optional[str] = None
    context_phase: Optional[str] = None
    created_at: str


class ViewersUpdate(BaseModel):
    viewer_ids: List[str] = Field(default_factory=list)


# ============================================================
# HELPERS
# ============================================================

def _routing_failure(exc: PhaseRoutingError) -> HTTPException:
    logger.warning(f"Task move failed [{exc.code}]: {exc.message}")
    return HTTPException(
        status_code=exc.http_status,
        detail={"message": "Failed to move task", "code": exc.code},
    )


async def _get_task(task_id: str, db: AsyncSession) -> Task:
    task = await db.get(Task, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


# ============================================================
# CATALOGUE
# ============================================================

@router.get("", response_model=List[PhaseOut])
async def list_phases(actor: CurrentActor = Depends(get_current_actor)):
    """Canonical phases in pipeline order"""
    return [PhaseOut(**p) for p in catalogue()]


# ============================================================
# PROGRESSION
# ============================================================

@router.post("/tasks/{task_id}/advance", response_model=AdvanceOut)
async def advance_task(
    task_id: str,
    actor: CurrentActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
):
    """Move a task to the next phase of its pipeline"""
    engine = ProgressionEngine(db)
    try:
        result = await engine.advance(task_id, actor.id)
    except PhaseRoutingError as exc:
        raise _routing_failure(exc)
    return AdvanceOut(**result.to_dict())


@router.post("/tasks/move", response_model=BulkMoveOut)
async def move_tasks(
    data: BulkMoveRequest,
    actor: CurrentActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
):
    """Move one or many tasks to an explicitly chosen phase"""
    engine = ProgressionEngine(db)
    try:
        result = await engine.move_to_phase(data.task_ids, data.target_phase, actor.id)
    except PhaseRoutingError as exc:
        raise _routing_failure(exc)
    return BulkMoveOut(**result.to_dict())


# ============================================================
# ACTIVITY
# ============================================================

@router.get("/tasks/{task_id}/activity", response_model=List[ActivityOut])
async def get_task_activity(
    task_id: str,
    limit: int = Query(default=100, ge=1, le=500),
    actor: CurrentActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
):
    """Activity log for a task, newest first"""
    await _get_task(task_id, db)
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.task_id == task_id)
        .order_by(ActivityLog.id.desc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return [
        ActivityOut(
            id=a.id, type=a.type, field=a.field,
            old_value=a.old_value, new_value=a.new_value, user_id=a.user_id,
            context_board=a.context_board, context_phase=a.context_phase,
            created_at=a.created_at.isoformat() if a.created_at else "",
        )
        for a in result.scalars().all()
    ]


# ============================================================
# VIEWERS
# ============================================================

@router.get("/tasks/{task_id}/viewers", response_model=List[str])
async def list_viewers(
    task_id: str,
    actor: CurrentActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
):
    await _get_task(task_id, db)
    stmt = select(TaskViewer.team_member_id).where(TaskViewer.task_id == task_id)
    return list((await db.execute(stmt)).scalars().all())


@router.put("/tasks/{task_id}/viewers", response_model=List[str])
async def replace_viewers(
    task_id: str,
    data: ViewersUpdate,
    actor: CurrentActor = Depends(require_project_manager),
    db: AsyncSession = Depends(get_db_session),
):
    """Replace the task's viewer bindings with the given team members"""
    await _get_task(task_id, db)
    viewer_ids = list(dict.fromkeys(data.viewer_ids))
    if viewer_ids:
        known = set((await db.execute(
            select(TeamMember.id).where(TeamMember.id.in_(viewer_ids))
        )).scalars().all())
        missing = [v for v in viewer_ids if v not in known]
        if missing:
            raise HTTPException(status_code=404, detail=f"Team member not found: {missing[0]}")

    await db.execute(delete(TaskViewer).where(TaskViewer.task_id == task_id))
    for viewer_id in viewer_ids:
        db.add(TaskViewer(task_id=task_id, team_member_id=viewer_id))
    await db.commit()
    return viewer_ids
