#!/usr/bin/env python3
"""
DubFlow — Pipeline Provisioning

Creates a pipeline workspace with one board per production phase, named
'<prefix>-<phase label>', each with the default lane. Existing boards are
left alone, so re-running against the same workspace only fills gaps.

Usage:
    python pipeline_seed.py --name Miami --prefix MIA
    python pipeline_seed.py --name Colombia --prefix COL --hq
"""

import argparse
import asyncio
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from board_resolver import DEFAULT_LANE_COLOR, DEFAULT_LANE_NAME
from database import get_db_context, init_db
from models import Board, Lane, Workspace
from phase_catalog import PIPELINE_ORDER, Phase, board_phase

logger = logging.getLogger("dubflow.seed")


async def provision_pipeline(
    db: AsyncSession, name: str, prefix: str, phases: Optional[List[Phase]] = None,
    with_hq: bool = False,
) -> Dict[str, Board]:
    """Ensure the workspace and its phase boards exist; returns boards by phase key."""
    workspace = (await db.execute(
        select(Workspace).where(Workspace.name == name)
    )).scalars().first()
    if workspace is None:
        workspace = Workspace(name=name)
        db.add(workspace)
        await db.flush()
        logger.info(f"Created pipeline {name}")

    existing = (await db.execute(
        select(Board).where(Board.workspace_id == workspace.id, Board.is_hq.isnot(True))
    )).scalars().all()
    boards = {
        board_phase(b.name): b for b in existing if b.name.startswith(f"{prefix}-")
    }

    for position, phase in enumerate(phases or PIPELINE_ORDER, start=1):
        if phase.value in boards:
            continue
        board = Board(workspace_id=workspace.id, name=f"{prefix}-{phase.label}", sort_order=position)
        db.add(board)
        await db.flush()
        db.add(Lane(board_id=board.id, name=DEFAULT_LANE_NAME, color=DEFAULT_LANE_COLOR, sort_order=0))
        boards[phase.value] = board

    if with_hq:
        hq_name = f"{prefix}-HQ"
        hq = (await db.execute(
            select(Board).where(Board.workspace_id == workspace.id, Board.name == hq_name)
        )).scalars().first()
        if hq is None:
            db.add(Board(workspace_id=workspace.id, name=hq_name, is_hq=True, sort_order=0))

    await db.flush()
    return boards


async def _run(args):
    await init_db()
    async with get_db_context() as db:
        boards = await provision_pipeline(db, args.name, args.prefix, with_hq=args.hq)
    print(f"Pipeline {args.name}: {len(boards)} phase boards ready")


def main():
    parser = argparse.ArgumentParser(description="Provision DubFlow pipeline boards")
    parser.add_argument("--name", required=True, help="Pipeline (workspace) display name")
    parser.add_argument("--prefix", required=True, help="Board name prefix, e.g. MIA")
    parser.add_argument("--hq", action="store_true", help="Also create the pipeline's HQ board")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
