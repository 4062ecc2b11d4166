# progpath_backend/models.py
from typing import Optional, List, Dict
from datetime import datetime, timezone
from enum import Enum

from sqlmodel import SQLModel, Field
from sqlalchemy import UniqueConstraint, Column, JSON


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage convention for every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_title(title: str) -> str:
    """Key used for case-insensitive title uniqueness."""
    return title.strip().casefold()


# ============================================================
# ENUMS
# ============================================================
class UserRole(str, Enum):
    REGULAR = "regular"
    TEAMLEAD = "teamlead"
    ADMIN = "admin"


class WorkspaceType(str, Enum):
    ENGINEERING = "engineering"
    BUSINESS = "business"
    SALES = "sales"
    PROJECT = "project"
    EDUCATION = "education"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class TaskStatus(str, Enum):
    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    STUCK = "Stuck"
    DONE = "Done"


class TaskPriority(str, Enum):
    NONE = ""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskMemberRole(str, Enum):
    ASSIGNEE = "assignee"
    REPORTER = "reporter"


# ============================================================
# USER
# ============================================================
class User(SQLModel, table=True):
    __tablename__ = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(max_length=100)
    email: str = Field(index=True, max_length=100, nullable=False)
    avatar: Optional[str] = None
    role: str = Field(default=UserRole.REGULAR.value, max_length=20, index=True)
    verified: bool = Field(default=False)
    blocked: bool = Field(default=False)
    timestamp: datetime = Field(default_factory=utcnow, index=True)


# ============================================================
# WORKSPACE (tenant)
# ============================================================
class Workspace(SQLModel, table=True):
    __tablename__ = "workspace"
    __table_args__ = (UniqueConstraint("owner_id", "title_key", name="uq_workspace_owner_title"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100)
    title_key: str = Field(max_length=100, index=True)
    owner_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    type: str = Field(max_length=20)
    description: Optional[str] = Field(default=None, max_length=500)
    freezed: bool = Field(default=False)
    timestamp: datetime = Field(default_factory=utcnow, index=True)


class WorkspaceCollaborator(SQLModel, table=True):
    """Membership link; the composite key keeps the set duplicate-free."""

    __tablename__ = "workspace_collaborator"

    workspace_id: int = Field(foreign_key="workspace.id", primary_key=True)
    user_id: int = Field(foreign_key="user.id", primary_key=True, index=True)
    joined_at: datetime = Field(default_factory=utcnow)


# ============================================================
# INVITATION (owned by a workspace)
# ============================================================
class Invitation(SQLModel, table=True):
    __tablename__ = "invitation"

    id: Optional[int] = Field(default=None, primary_key=True)
    workspace_id: int = Field(foreign_key="workspace.id", nullable=False, index=True)
    email: str = Field(max_length=100, nullable=False, index=True)
    status: str = Field(default=InvitationStatus.PENDING.value, max_length=20, index=True)
    timestamp: datetime = Field(default_factory=utcnow)
    acted_at: Optional[datetime] = None


# ============================================================
# PROJECT
# ============================================================
class Project(SQLModel, table=True):
    __tablename__ = "project"
    __table_args__ = (UniqueConstraint("workspace_id", "title_key", name="uq_project_workspace_title"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    workspace_id: int = Field(foreign_key="workspace.id", nullable=False, index=True)
    title: str = Field(max_length=100)
    title_key: str = Field(max_length=100)
    theme: str = Field(max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    starred: bool = Field(default=False)
    timestamp: datetime = Field(default_factory=utcnow)


# ============================================================
# TASK
# ============================================================
class Task(SQLModel, table=True):
    __tablename__ = "task"
    __table_args__ = (
        UniqueConstraint("workspace_id", "project_id", "title_key", name="uq_task_project_title"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    workspace_id: int = Field(foreign_key="workspace.id", nullable=False, index=True)
    project_id: int = Field(foreign_key="project.id", nullable=False, index=True)
    title: str = Field(max_length=200)
    title_key: str = Field(max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: str = Field(default=TaskStatus.NOT_STARTED.value, max_length=20, index=True)
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = Field(default=None, index=True)
    completion_date: Optional[datetime] = None
    priority: str = Field(default=TaskPriority.NONE.value, max_length=10)
    labels: List[Dict[str, str]] = Field(default_factory=list, sa_column=Column(JSON))
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    story_points: Optional[int] = None
    timestamp: datetime = Field(default_factory=utcnow)


class TaskMemberLink(SQLModel, table=True):
    """Assignee and reporter sets of a task."""

    __tablename__ = "task_member_link"

    task_id: int = Field(foreign_key="task.id", primary_key=True)
    user_id: int = Field(foreign_key="user.id", primary_key=True)
    role: str = Field(primary_key=True, max_length=20)


class TaskAttachment(SQLModel, table=True):
    __tablename__ = "task_attachment"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="task.id", nullable=False, index=True)
    key: str = Field(max_length=255, unique=True)
    original_name: Optional[str] = Field(default=None, max_length=255)
    content_type: Optional[str] = Field(default=None, max_length=100)
    timestamp: datetime = Field(default_factory=utcnow)


class TaskComment(SQLModel, table=True):
    __tablename__ = "task_comment"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="task.id", nullable=False, index=True)
    user_id: int = Field(foreign_key="user.id", nullable=False)
    text: str = Field(max_length=2000)
    timestamp: datetime = Field(default_factory=utcnow)


# ============================================================
# SUBSCRIPTION (written by the billing flow, read-only here)
# ============================================================
class UserSubscription(SQLModel, table=True):
    __tablename__ = "user_subscription"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    plan_title: str = Field(max_length=50, index=True)
    start_date: datetime
    end_date: datetime = Field(index=True)
    amount_paid: float = Field(default=0.0, ge=0.0)
    timestamp: datetime = Field(default_factory=utcnow, index=True)

    @property
    def is_active(self) -> bool:
        return self.end_date >= utcnow()


# ============================================================
# EXPORTS
# ============================================================
__all__ = [
    "User",
    "Workspace",
    "WorkspaceCollaborator",
    "Invitation",
    "Project",
    "Task",
    "TaskMemberLink",
    "TaskAttachment",
    "TaskComment",
    "UserSubscription",
    "UserRole",
    "WorkspaceType",
    "InvitationStatus",
    "TaskStatus",
    "TaskPriority",
    "TaskMemberRole",
    "utcnow",
    "normalize_title",
]
