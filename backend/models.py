# models.py — Database models for the DubFlow production pipeline
# - Workspaces (pipelines) own one board per production phase
# - Boards hold ordered lanes; lanes hold tasks
# - Per-role assignee columns on tasks drive the privacy gate
# - Activity log is append-only and ordered by its integer id

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, Date, Boolean, BigInteger, Integer,
    Enum as SQLEnum, ForeignKey, Text, Index, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


# ============================================================
# ENUMS
# ============================================================

class TeamMemberRole(str, PyEnum):
    PROJECT_MANAGER = "project_manager"
    MEMBER = "member"
    GUEST = "guest"


class TaskStatus(str, PyEnum):
    DEFAULT = "default"  # not started
    WORKING = "working"
    DELAYED = "delayed"
    DONE = "done"
    PENDING_APPROVAL = "pending_approval"


class RegionalStatus(str, PyEnum):
    ON_HOLD = "on_hold"
    ASSIGNED = "assigned"


class ActivityType(str, PyEnum):
    TASK_DELIVERED = "task_delivered"
    DATE_SET = "date_set"
    PHASE_CHANGE = "phase_change"
    PEOPLE_ADDED = "people_added"
    PRIVACY_CHANGED = "privacy_changed"
    FIELD_CHANGE = "field_change"


# ============================================================
# PIPELINES, BOARDS & LANES
# ============================================================

class Workspace(Base):
    """A production line (pipeline) grouping one board per phase"""
    __tablename__ = "workspaces"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    is_system_workspace = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    boards = relationship("Board", back_populates="workspace", order_by="Board.sort_order")


class Board(Base):
    """One phase board; the name encodes '<prefix>-<phase label>'"""
    __tablename__ = "boards"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    is_hq = Column(Boolean, default=False)  # HQ boards never take part in routing
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    workspace = relationship("Workspace", back_populates="boards")
    lanes = relationship("Lane", back_populates="board", order_by="Lane.sort_order")

    __table_args__ = (
        Index("idx_board_workspace", "workspace_id", "is_hq"),
    )


class Lane(Base):
    """Ordered bucket of tasks inside a board"""
    __tablename__ = "lanes"

    id = Column(String, primary_key=True, default=new_uuid)
    board_id = Column(String, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    color = Column(String, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_collapsed = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    board = relationship("Board", back_populates="lanes")

    __table_args__ = (
        Index("idx_lane_board_sort", "board_id", "sort_order"),
    )


# ============================================================
# TEAM MEMBERS
# ============================================================

class TeamMember(Base):
    """Internal staff or external (guest) collaborator"""
    __tablename__ = "team_members"

    id = Column(String, primary_key=True, default=new_uuid)
    name = Column(String, nullable=False)
    initials = Column(String, nullable=False)
    email = Column(String, nullable=True, index=True)
    role = Column(SQLEnum(TeamMemberRole), nullable=False, default=TeamMemberRole.MEMBER)
    color = Column(String, default="#6366f1")
    created_at = Column(DateTime(timezone=True), default=utcnow)


# ============================================================
# TASKS
# ============================================================

class Task(Base):
    """A unit of production work travelling through the phase boards"""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_uuid)
    lane_id = Column(String, ForeignKey("lanes.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    fase = Column(String, nullable=True)  # Human-facing phase label, may lag the board
    status = Column(SQLEnum(TaskStatus), nullable=False, default=TaskStatus.DEFAULT)
    branch = Column(String, nullable=False, default="Miami")
    work_order_number = Column(String, nullable=True)
    voice_test_required = Column(Boolean, nullable=True)
    sort_order = Column(Integer, default=0)

    # Role slots
    project_manager_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    translator_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    adapter_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    qc_1_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    qc_retakes_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    qc_mix_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    mixer_bogota_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    mixer_miami_id = Column(String, ForeignKey("team_members.id"), nullable=True)

    # Privacy & dates
    is_private = Column(Boolean, nullable=False, default=False)
    guest_due_date = Column(Date, nullable=True)
    date_assigned = Column(Date, nullable=True)
    date_delivered = Column(Date, nullable=True)
    regional_status = Column(SQLEnum(RegionalStatus), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    last_updated = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    lane = relationship("Lane")

    __table_args__ = (
        Index("idx_task_lane_sort", "lane_id", "sort_order"),
    )


class TaskPerson(Base):
    """Assignment of a team member to a task"""
    __tablename__ = "task_people"

    id = Column(String, primary_key=True, default=new_uuid)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    team_member_id = Column(String, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("task_id", "team_member_id", name="uq_task_person"),
    )


class TaskViewer(Base):
    """Restricted-visibility grant for a collaborator on a private task"""
    __tablename__ = "task_viewers"

    id = Column(String, primary_key=True, default=new_uuid)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    team_member_id = Column(String, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("task_id", "team_member_id", name="uq_task_viewer"),
    )


class TaskFile(Base):
    """File attached to a task"""
    __tablename__ = "task_files"

    id = Column(String, primary_key=True, default=new_uuid)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    url = Column(String, nullable=False)
    size = Column(BigInteger, default=0)
    file_category = Column(String, default="general")
    phase = Column(String, nullable=True)
    is_guest_accessible = Column(Boolean, nullable=False, default=False)
    uploaded_by_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow)


# ============================================================
# ACTIVITY LOG
# ============================================================

class ActivityLog(Base):
    """Append-only audit entry; id order is commit order"""
    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    field = Column(String, nullable=True)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    user_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    context_board = Column(String, nullable=True)
    context_phase = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index("idx_activity_task_time", "task_id", "created_at"),
    )


# ============================================================
# NOTIFICATIONS
# ============================================================

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=new_uuid)
    user_id = Column(String, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    triggered_by_id = Column(String, ForeignKey("team_members.id"), nullable=True)
    board_name = Column(String, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)


# ============================================================
# PHASE AUTOMATIONS
# ============================================================

class PhaseAutomation(Base):
    """Team member auto-assigned when a task enters a phase of a workspace"""
    __tablename__ = "phase_automations"

    id = Column(String, primary_key=True, default=new_uuid)
    workspace_id = Column(String, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    phase = Column(String, nullable=False)  # canonical phase key
    team_member_id = Column(String, ForeignKey("team_members.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("workspace_id", "phase", "team_member_id", name="uq_phase_automation"),
    )
