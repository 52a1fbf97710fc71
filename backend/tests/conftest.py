# tests/conftest.py — Shared test fixtures
import os
import uuid
from datetime import date

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["INTERNAL_EMAIL_DOMAIN"] = "centauro.com"
os.environ["ENVIRONMENT"] = "test"

from models import Base, Board, Lane, Task, TeamMember, TeamMemberRole, Workspace
from auth import create_access_token
from database import get_db_session
from main import app
from phase_catalog import PIPELINE_ORDER

# A Friday, so the next business day is the following Monday
FIXED_TODAY = date(2026, 10, 16)
NEXT_MONDAY = date(2026, 10, 19)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine):
    """HTTP test client with overridden DB dependency"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================
# TEAM MEMBERS
# ============================================================

async def _member(db, name, email, role=TeamMemberRole.MEMBER):
    member = TeamMember(
        id=str(uuid.uuid4()),
        name=name,
        initials="".join(part[0] for part in name.split()).upper(),
        email=email,
        role=role,
    )
    db.add(member)
    await db.commit()
    await db.refresh(member)
    return member


@pytest_asyncio.fixture
async def project_manager(db_session):
    return await _member(db_session, "Paula Medina", "paula@centauro.com", TeamMemberRole.PROJECT_MANAGER)


@pytest_asyncio.fixture
async def internal_member(db_session):
    return await _member(db_session, "Andres Rojas", "andres@centauro.com")


@pytest_asyncio.fixture
async def second_member(db_session):
    return await _member(db_session, "Lucia Vargas", "lucia@centauro.com")


@pytest_asyncio.fixture
async def guest_member(db_session):
    return await _member(db_session, "Guest Mixer", "mixer@freelance-audio.net", TeamMemberRole.GUEST)


@pytest_asyncio.fixture
async def outside_member(db_session):
    """Regular member whose email sits outside the internal domain"""
    return await _member(db_session, "Sofia Adapter", "sofia@studio-bogota.co")


# ============================================================
# PIPELINES
# ============================================================

class Pipeline:
    def __init__(self, workspace, boards, lanes):
        self.workspace = workspace
        self.boards = boards  # phase key -> Board
        self.lanes = lanes  # phase key -> first Lane

    def board(self, phase):
        return self.boards[getattr(phase, "value", phase)]

    def lane(self, phase):
        return self.lanes[getattr(phase, "value", phase)]


async def build_pipeline(db, workspace_name, prefix, phases=None, with_lanes=True):
    """One board per phase named '<prefix>-<label>', each with a single lane."""
    workspace = Workspace(id=str(uuid.uuid4()), name=workspace_name)
    db.add(workspace)
    boards, lanes = {}, {}
    for index, phase in enumerate(phases or PIPELINE_ORDER):
        board = Board(
            id=str(uuid.uuid4()),
            workspace_id=workspace.id,
            name=f"{prefix}-{phase.label}",
            sort_order=index + 1,
        )
        db.add(board)
        boards[phase.value] = board
        if with_lanes:
            lane = Lane(id=str(uuid.uuid4()), board_id=board.id, name="Tasks", sort_order=0)
            db.add(lane)
            lanes[phase.value] = lane
    await db.commit()
    return Pipeline(workspace, boards, lanes)


async def create_task(db, lane, name="Episode 101", **fields):
    task = Task(id=str(uuid.uuid4()), lane_id=lane.id, name=name, **fields)
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task


@pytest_asyncio.fixture
async def miami_pipeline(db_session):
    return await build_pipeline(db_session, "Miami", "MIA")


@pytest_asyncio.fixture
async def colombia_pipeline(db_session):
    return await build_pipeline(db_session, "Colombia", "COL")


@pytest.fixture
def fixed_today():
    return lambda: FIXED_TODAY


def get_auth_headers(member: TeamMember) -> dict:
    """Generate auth headers for a team member"""
    token = create_access_token({"sub": member.id})
    return {"Authorization": f"Bearer {token}"}
