# phase_automations.py — Automation rules and the assignment automator
import logging
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from activity import record_activity
from models import ActivityType, PhaseAutomation, Task, TaskPerson, TeamMember
from notify import Dispatcher, create_notification, dispatch_safely
from phase_catalog import Phase

logger = logging.getLogger("dubflow.automations")


# ============================================================
# RULE STORES
# ============================================================

class AutomationRuleStore(Protocol):
    async def members_for(self, workspace_id: str, phase: Phase) -> List[str]: ...


class SqlAutomationRuleStore:
    """Reads phase_automations rows, oldest rule first."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def members_for(self, workspace_id: str, phase: Phase) -> List[str]:
        stmt = (
            select(PhaseAutomation.team_member_id)
            .where(
                PhaseAutomation.workspace_id == workspace_id,
                PhaseAutomation.phase == phase.value,
            )
            .order_by(PhaseAutomation.created_at, PhaseAutomation.id)
        )
        return list((await self.db.execute(stmt)).scalars().all())


class StaticAutomationRuleStore:
    """In-memory rules keyed by (workspace id, phase)."""

    def __init__(self, rules: Optional[Dict[Tuple[str, Phase], Iterable[str]]] = None):
        self._rules = {key: list(ids) for key, ids in (rules or {}).items()}

    async def members_for(self, workspace_id: str, phase: Phase) -> List[str]:
        return list(self._rules.get((workspace_id, phase), []))


# ============================================================
# AUTOMATOR
# ============================================================

class AssignmentAutomator:
    def __init__(
        self, db: AsyncSession, rules: AutomationRuleStore,
        dispatcher: Dispatcher = create_notification,
    ):
        self.db = db
        self.rules = rules
        self.dispatcher = dispatcher

    async def apply(
        self, task: Task, phase: Phase, workspace_id: str, actor_id: Optional[str],
        context_board: str = None, context_phase: str = None,
    ) -> List[str]:
        """Assign the configured members missing from the task; returns their ids."""
        configured = await self.rules.members_for(workspace_id, phase)
        if not configured:
            return []

        existing_stmt = select(TaskPerson.team_member_id).where(TaskPerson.task_id == task.id)
        existing = set((await self.db.execute(existing_stmt)).scalars().all())

        added: List[str] = []
        for member_id in configured:
            if member_id in existing or member_id in added:
                continue
            added.append(member_id)
        if not added:
            return []

        for member_id in added:
            self.db.add(TaskPerson(task_id=task.id, team_member_id=member_id))

        names_stmt = select(TeamMember.id, TeamMember.name).where(TeamMember.id.in_(added))
        names = {row.id: row.name for row in (await self.db.execute(names_stmt)).all()}

        phase_label = context_phase or phase.label
        for member_id in added:
            if member_id == actor_id:
                continue
            await dispatch_safely(
                self.dispatcher, self.db,
                recipient_id=member_id,
                notification_type="task_assigned",
                task_id=task.id,
                actor_id=actor_id,
                title=f"You were assigned to {task.name}",
                message=f"Automatically added when the task entered {phase_label}",
                board_name=context_board,
            )

        record_activity(
            self.db, task.id, actor_id, ActivityType.PEOPLE_ADDED,
            field="people",
            new_value=", ".join(names.get(member_id, member_id) for member_id in added),
            context_board=context_board, context_phase=context_phase,
        )
        logger.info(f"Auto-assigned {len(added)} member(s) to task {task.id} for {phase.value}")
        return added
