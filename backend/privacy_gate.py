# privacy_gate.py — Restricted visibility for external collaborators
"""
Runs after a task has landed on its destination lane. Viewer bindings from
the previous phase are always dropped; when the collaborator occupying the
new phase's role slot is external, the task turns private, gets a guest due
date and a single viewer binding for that collaborator, and its files become
guest-accessible.
"""
import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from activity import record_activity
from business_days import next_business_day
from models import (
    ActivityType, RegionalStatus, Task, TaskFile, TaskViewer, TeamMember, TeamMemberRole,
)
from phase_catalog import Phase, PipelineVariant, role_slot_for

logger = logging.getLogger("dubflow.privacy")

INTERNAL_EMAIL_DOMAIN = os.getenv("INTERNAL_EMAIL_DOMAIN", "centauro.com").lower().lstrip("@")


def is_external(member: Optional[TeamMember]) -> bool:
    """Guests and outside-domain emails are external.

    A missing member, or one without an email, cannot be classified and is
    treated as internal so no external access is granted.
    """
    if member is None:
        return False
    role = member.role.value if isinstance(member.role, TeamMemberRole) else member.role
    if role == TeamMemberRole.GUEST.value:
        return True
    email = (member.email or "").strip().lower()
    if not email:
        return False
    return not email.endswith("@" + INTERNAL_EMAIL_DOMAIN)


@dataclass
class PrivacyOutcome:
    made_private: bool = False
    viewer_id: Optional[str] = None
    guest_due_date: Optional[date] = None


class PrivacyGate:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply(
        self, task: Task, phase: Phase, variant: PipelineVariant, actor_id: Optional[str],
        today: date, context_board: str = None, context_phase: str = None,
    ) -> PrivacyOutcome:
        await self.db.execute(delete(TaskViewer).where(TaskViewer.task_id == task.id))

        slot = role_slot_for(phase, variant)
        if slot is None:
            return PrivacyOutcome()

        member_id = getattr(task, slot.value)
        if not member_id:
            return PrivacyOutcome()

        member = await self.db.get(TeamMember, member_id)
        if not is_external(member):
            return PrivacyOutcome()

        due = next_business_day(today)
        was_private = bool(task.is_private)
        task.is_private = True
        task.guest_due_date = due
        self.db.add(TaskViewer(task_id=task.id, team_member_id=member.id))
        await self.db.execute(
            update(TaskFile)
            .where(TaskFile.task_id == task.id)
            .values(is_guest_accessible=True)
        )
        record_activity(
            self.db, task.id, actor_id, ActivityType.PRIVACY_CHANGED,
            field="is_private", old_value=was_private, new_value=True,
            context_board=context_board, context_phase=context_phase,
        )

        if variant.is_colombia and phase is Phase.ADAPTING:
            old_status = task.regional_status
            task.regional_status = RegionalStatus.ASSIGNED
            record_activity(
                self.db, task.id, actor_id, ActivityType.FIELD_CHANGE,
                field="regional_status", old_value=old_status, new_value=RegionalStatus.ASSIGNED,
                context_board=context_board, context_phase=context_phase,
            )

        logger.info(f"Task {task.id} restricted to external collaborator {member.id} until {due}")
        return PrivacyOutcome(made_private=True, viewer_id=member.id, guest_due_date=due)
