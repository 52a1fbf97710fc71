# routers/automations.py — Phase automation rules (auto-assignment per phase)
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_actor, require_project_manager, CurrentActor
from database import get_db_session
from models import PhaseAutomation, TeamMember, Workspace
from phase_catalog import parse_phase

router = APIRouter(prefix="/api/v1/automations", tags=["Phase Automations"])


class AutomationCreate(BaseModel):
    workspace_id: str
    phase: str
    team_member_id: str


class AutomationOut(BaseModel):
    id: str
    workspace_id: str
    phase: str
    team_member_id: str
    team_member_name: Optional[str] = None
    created_at: str


@router.get("", response_model=List[AutomationOut])
async def list_automations(
    workspace_id: Optional[str] = Query(None),
    actor: CurrentActor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db_session),
):
    stmt = (
        select(PhaseAutomation, TeamMember.name)
        .join(TeamMember, TeamMember.id == PhaseAutomation.team_member_id)
        .order_by(PhaseAutomation.phase, PhaseAutomation.created_at)
    )
    if workspace_id:
        stmt = stmt.where(PhaseAutomation.workspace_id == workspace_id)
    rows = (await db.execute(stmt)).all()
    return [
        AutomationOut(
            id=a.id, workspace_id=a.workspace_id, phase=a.phase,
            team_member_id=a.team_member_id, team_member_name=name,
            created_at=a.created_at.isoformat(),
        )
        for a, name in rows
    ]


@router.post("", response_model=AutomationOut, status_code=201)
async def add_automation(
    data: AutomationCreate,
    actor: CurrentActor = Depends(require_project_manager),
    db: AsyncSession = Depends(get_db_session),
):
    """Auto-assign a team member whenever a task enters the phase"""
    phase = parse_phase(data.phase)
    if phase is None:
        raise HTTPException(status_code=400, detail=f"Unknown phase: {data.phase}")
    if not await db.get(Workspace, data.workspace_id):
        raise HTTPException(status_code=404, detail="Workspace not found")
    member = await db.get(TeamMember, data.team_member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Team member not found")

    duplicate = (await db.execute(
        select(PhaseAutomation.id).where(
            PhaseAutomation.workspace_id == data.workspace_id,
            PhaseAutomation.phase == phase.value,
            PhaseAutomation.team_member_id == data.team_member_id,
        )
    )).scalar_one_or_none()
    if duplicate:
        raise HTTPException(status_code=409, detail="This team member is already assigned to this phase")

    rule = PhaseAutomation(
        workspace_id=data.workspace_id,
        phase=phase.value,
        team_member_id=data.team_member_id,
    )
    db.add(rule)
    await db.commit()
    await db.refresh(rule)
    return AutomationOut(
        id=rule.id, workspace_id=rule.workspace_id, phase=rule.phase,
        team_member_id=rule.team_member_id, team_member_name=member.name,
        created_at=rule.created_at.isoformat(),
    )


@router.delete("/{automation_id}")
async def remove_automation(
    automation_id: str,
    actor: CurrentActor = Depends(require_project_manager),
    db: AsyncSession = Depends(get_db_session),
):
    rule = await db.get(PhaseAutomation, automation_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Automation not found")
    await db.delete(rule)
    await db.commit()
    return {"status": "deleted", "automation_id": automation_id}
