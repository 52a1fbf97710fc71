# board_resolver.py — Locate the destination board and lane for a phase
import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import BoardNotFoundError, LaneNotFoundError
from models import Board, Lane, Workspace
from phase_catalog import Phase, PipelineVariant, board_phase, parse_board_name

logger = logging.getLogger("dubflow.routing")

DEFAULT_LANE_NAME = "Tasks"
DEFAULT_LANE_COLOR = "hsl(209, 100%, 46%)"


@dataclass
class RoutingOrigin:
    """Where a task currently sits, resolved from its lane"""
    lane: Lane
    board: Board
    workspace: Workspace
    prefix: str
    phase_label: str  # board suffix, e.g. "QC Mix"
    phase_key: str  # normalised suffix, may be an unknown key
    variant: PipelineVariant


@dataclass
class Destination:
    board: Board
    lane: Lane
    phase: Phase
    phase_label: str
    workspace_id: str
    variant: PipelineVariant


class BoardResolver:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def origin_for_lane(self, lane_id: str) -> RoutingOrigin:
        lane = await self.db.get(Lane, lane_id)
        if lane is None:
            raise LaneNotFoundError(lane_id)
        board = await self.db.get(Board, lane.board_id)
        workspace = await self.db.get(Workspace, board.workspace_id)
        prefix, suffix = parse_board_name(board.name)
        return RoutingOrigin(
            lane=lane,
            board=board,
            workspace=workspace,
            prefix=prefix,
            phase_label=suffix,
            phase_key=board_phase(board.name),
            variant=PipelineVariant.resolve(workspace.name, prefix),
        )

    async def find_board(self, workspace_id: str, prefix: str, phase: Phase) -> Board:
        """The non-HQ board of the workspace whose prefix and phase both match"""
        stmt = (
            select(Board)
            .where(Board.workspace_id == workspace_id, Board.is_hq.isnot(True))
            .order_by(Board.sort_order, Board.created_at)
        )
        result = await self.db.execute(stmt)
        matches = [
            board for board in result.scalars().all()
            if board_phase(board.name) == phase.value and board.name.startswith(prefix)
        ]
        if not matches:
            logger.warning(f"No board for phase {phase.value} with prefix {prefix!r} in workspace {workspace_id}")
            raise BoardNotFoundError(phase.value, prefix)
        if len(matches) > 1:
            logger.warning(
                f"Ambiguous boards for phase {phase.value} with prefix {prefix!r}: "
                f"{', '.join(b.name for b in matches)}; using {matches[0].name}"
            )
        return matches[0]

    async def first_lane(self, board: Board) -> Lane:
        """Lowest-sorted lane of the board, creating the default lane if none exist"""
        stmt = (
            select(Lane)
            .where(Lane.board_id == board.id)
            .order_by(Lane.sort_order, Lane.created_at)
            .limit(1)
        )
        lane = (await self.db.execute(stmt)).scalar_one_or_none()
        if lane is not None:
            return lane

        lane = Lane(board_id=board.id, name=DEFAULT_LANE_NAME, color=DEFAULT_LANE_COLOR, sort_order=0)
        self.db.add(lane)
        await self.db.flush()
        logger.info(f"Created default lane on board {board.name}")
        return lane

    async def resolve(self, origin: RoutingOrigin, phase: Phase) -> Destination:
        board = await self.find_board(origin.workspace.id, origin.prefix, phase)
        lane = await self.first_lane(board)
        return Destination(
            board=board,
            lane=lane,
            phase=phase,
            phase_label=parse_board_name(board.name)[1],
            workspace_id=origin.workspace.id,
            variant=origin.variant,
        )
