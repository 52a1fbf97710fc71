"""
DubFlow — Phase Progression Engine

Moves tasks between phase boards. `advance` computes the next phase from the
board a task currently sits on; `move_to_phase` routes one or many tasks to
an explicitly chosen phase. Both share the same per-task transition:

    1. stamp date_delivered on the outgoing record (stage exit)
    2. land on the destination lane with a fresh status and date_assigned
    3. re-derive privacy for the destination role slot
    4. apply phase automations
    5. log date_assigned and the phase change

Every call is a single unit of work on the session it was given: nothing is
committed until the whole sequence succeeds, and any failure rolls back all
of it, so a missing destination board never leaves a half-moved task.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from activity import record_activity
from board_resolver import BoardResolver, Destination, RoutingOrigin
from business_days import today_local
from errors import MixedPipelineBatchError, TaskNotFoundError, UnknownPhaseError
from models import ActivityType, Task, TaskStatus
from notify import Dispatcher, create_notification
from phase_automations import AssignmentAutomator, AutomationRuleStore, SqlAutomationRuleStore
from phase_catalog import Phase, arrival_overrides, next_phase, parse_phase
from privacy_gate import PrivacyGate

logger = logging.getLogger("dubflow.engine")


@dataclass
class AdvanceResult:
    """Outcome of advancing a single task"""
    moved: bool
    task_id: str
    from_phase: Optional[str] = None
    to_phase: Optional[str] = None
    phase_label: Optional[str] = None
    board_name: Optional[str] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "moved": self.moved,
            "task_id": self.task_id,
            "from_phase": self.from_phase,
            "to_phase": self.to_phase,
            "phase_label": self.phase_label,
            "board_name": self.board_name,
            "message": self.message,
        }


@dataclass
class BulkMoveResult:
    """Outcome of routing a batch of tasks to one phase"""
    count: int
    target_phase: str
    phase_label: Optional[str] = None
    board_name: Optional[str] = None
    task_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "target_phase": self.target_phase,
            "phase_label": self.phase_label,
            "board_name": self.board_name,
            "task_ids": self.task_ids,
        }


class ProgressionEngine:
    """Phase state machine over tasks; all state lives in the database."""

    def __init__(
        self,
        db: AsyncSession,
        rules: Optional[AutomationRuleStore] = None,
        today_provider: Callable[[], date] = today_local,
        dispatcher: Dispatcher = create_notification,
    ):
        self.db = db
        self.today_provider = today_provider
        self.resolver = BoardResolver(db)
        self.privacy = PrivacyGate(db)
        self.automator = AssignmentAutomator(db, rules or SqlAutomationRuleStore(db), dispatcher)

    # ----------------------------------------------------------
    # Entry points
    # ----------------------------------------------------------

    async def advance(self, task_id: str, actor_id: Optional[str]) -> AdvanceResult:
        """Move a task to the phase after the one its board represents."""
        today = self.today_provider()
        try:
            task = await self._load_task(task_id)
            origin = await self.resolver.origin_for_lane(task.lane_id)
            target = next_phase(origin.phase_key, task.voice_test_required)
            if target is None:
                logger.warning(f"Task {task_id} on board {origin.board.name} has no next phase")
                result = AdvanceResult(
                    moved=False,
                    task_id=task_id,
                    from_phase=origin.phase_key,
                    message="Task is already at the final phase",
                )
                await self.db.rollback()
                return result

            destination = await self.resolver.resolve(origin, target)
            await self._transition(task, origin, destination, actor_id, today)
            result = AdvanceResult(
                moved=True,
                task_id=task_id,
                from_phase=origin.phase_key,
                to_phase=target.value,
                phase_label=destination.phase_label,
                board_name=destination.board.name,
                message=f"Task moved to {destination.phase_label}",
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(
            f"Task {task_id}: {result.from_phase} → {result.to_phase} "
            f"on {result.board_name} by {actor_id}"
        )
        return result

    async def move_to_phase(
        self, task_ids: Iterable[str], target: Union[str, Phase], actor_id: Optional[str],
    ) -> BulkMoveResult:
        """Route every task to `target`; the batch commits or fails as a whole.

        Every task must sit in the same pipeline family (workspace and board
        prefix). Origins and the shared destination are resolved before any
        task is touched.
        """
        phase = parse_phase(target)
        if phase is None:
            raise UnknownPhaseError(str(target))

        ordered_ids = list(dict.fromkeys(task_ids))
        if not ordered_ids:
            return BulkMoveResult(count=0, target_phase=phase.value, phase_label=phase.label)

        today = self.today_provider()
        try:
            tasks = [await self._load_task(task_id) for task_id in ordered_ids]
            origins: Dict[str, RoutingOrigin] = {}
            for task in tasks:
                if task.lane_id not in origins:
                    origins[task.lane_id] = await self.resolver.origin_for_lane(task.lane_id)

            anchor = origins[tasks[0].lane_id]
            for task in tasks[1:]:
                origin = origins[task.lane_id]
                if (origin.workspace.id, origin.prefix) != (anchor.workspace.id, anchor.prefix):
                    logger.warning(
                        f"Rejected batch move: task {task.id} is on {origin.board.name}, "
                        f"batch started on {anchor.board.name}"
                    )
                    raise MixedPipelineBatchError(anchor.board.name, origin.board.name)

            destination = await self.resolver.resolve(anchor, phase)
            for task in tasks:
                await self._transition(task, origins[task.lane_id], destination, actor_id, today)

            result = BulkMoveResult(
                count=len(tasks),
                target_phase=phase.value,
                phase_label=destination.phase_label,
                board_name=destination.board.name,
                task_ids=ordered_ids,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info(f"Moved {result.count} task(s) to {result.board_name} by {actor_id}")
        return result

    # ----------------------------------------------------------
    # Shared transition
    # ----------------------------------------------------------

    async def _load_task(self, task_id: str) -> Task:
        stmt = select(Task).where(Task.id == task_id).with_for_update()
        task = (await self.db.execute(stmt)).scalar_one_or_none()
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def _transition(
        self, task: Task, origin: RoutingOrigin, destination: Destination,
        actor_id: Optional[str], today: date,
    ) -> None:
        board_name = destination.board.name
        phase_label = destination.phase_label

        # Stage exit, stamped against the board the task is leaving
        task.date_delivered = today
        record_activity(
            self.db, task.id, actor_id, ActivityType.TASK_DELIVERED,
            field="date_delivered", new_value=today,
            context_board=origin.board.name, context_phase=origin.phase_label,
        )

        old_label = task.fase or origin.phase_label
        old_assigned = task.date_assigned
        task.lane_id = destination.lane.id
        task.status = TaskStatus.DEFAULT
        task.fase = phase_label
        task.date_assigned = today
        task.date_delivered = None
        task.guest_due_date = None

        for field_name, value in arrival_overrides(destination.phase, destination.variant).items():
            old_value = getattr(task, field_name)
            if old_value == value:
                continue
            setattr(task, field_name, value)
            record_activity(
                self.db, task.id, actor_id, ActivityType.FIELD_CHANGE,
                field=field_name, old_value=old_value, new_value=value,
                context_board=board_name, context_phase=phase_label,
            )

        await self.privacy.apply(
            task, destination.phase, destination.variant, actor_id, today,
            context_board=board_name, context_phase=phase_label,
        )
        await self.automator.apply(
            task, destination.phase, destination.workspace_id, actor_id,
            context_board=board_name, context_phase=phase_label,
        )

        record_activity(
            self.db, task.id, actor_id, ActivityType.DATE_SET,
            field="date_assigned", old_value=old_assigned, new_value=today,
            context_board=board_name, context_phase=phase_label,
        )
        record_activity(
            self.db, task.id, actor_id, ActivityType.PHASE_CHANGE,
            field="fase", old_value=old_label, new_value=phase_label,
            context_board=board_name, context_phase=phase_label,
        )
