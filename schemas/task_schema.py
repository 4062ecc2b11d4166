# task_schema.py
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime, date

from models.models import TaskStatus, TaskPriority
from schemas.user_schema import UserPublic


class Label(BaseModel):
    text: str = Field(..., max_length=50)
    theme: Optional[str] = Field(default=None, max_length=30)


class TaskCreate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: TaskStatus = TaskStatus.NOT_STARTED
    priority: TaskPriority = TaskPriority.NONE
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    labels: List[Label] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    assignee_ids: List[int] = Field(default_factory=list)
    reporter_ids: List[int] = Field(default_factory=list)
    story_points: Optional[int] = Field(default=None, ge=0)

    @field_validator("labels", "tags", "assignee_ids", "reporter_ids", mode="before")
    @classmethod
    def none_to_list(cls, v):
        if v is None:
            return []
        return v


class TaskUpdate(TaskCreate):
    """Full edit; the form always resubmits every field."""


class StatusUpdate(BaseModel):
    status: TaskStatus


class PriorityUpdate(BaseModel):
    priority: TaskPriority


class TaskRead(BaseModel):
    id: int
    workspace_id: int
    project_id: int
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    labels: List[Label] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    story_points: Optional[int] = None
    timestamp: datetime
    assignee_ids: List[int] = Field(default_factory=list)
    reporter_ids: List[int] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class TaskListItem(BaseModel):
    id: int
    title: str
    status: str
    priority: str
    labels: List[Label] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    assignees: List[UserPublic] = Field(default_factory=list)


# Comments
class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)


class CommentRead(BaseModel):
    id: int
    task_id: int
    text: str
    timestamp: datetime
    user: Optional[UserPublic] = None


# Attachments
class AttachmentRead(BaseModel):
    id: int
    key: str
    original_name: Optional[str] = None
    content_type: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class TaskDetail(BaseModel):
    task: TaskRead
    assignees: List[UserPublic] = Field(default_factory=list)
    reporters: List[UserPublic] = Field(default_factory=list)
    attachments: List[AttachmentRead] = Field(default_factory=list)
    comments: List[CommentRead] = Field(default_factory=list)


# ============================================================
# ✅ Typed task listing query
# ============================================================
TaskSortField = Literal["timestamp", "title", "due_date", "priority", "status"]


class TaskQuery(BaseModel):
    search: Optional[str] = Field(default=None, max_length=200)
    date_preset: Optional[Literal["today", "thisweek", "thismonth"]] = Field(default=None, alias="date")
    date_from: Optional[date] = Field(default=None, alias="dateFrom")
    date_upto: Optional[date] = Field(default=None, alias="dateUpto")
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    sort_by: Optional[TaskSortField] = Field(default=None, alias="sortBy")
    order: int = -1

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("order")
    @classmethod
    def check_order(cls, v):
        if v not in (1, -1):
            raise ValueError("order must be 1 or -1")
        return v

    @field_validator("search")
    @classmethod
    def strip_hash(cls, v):
        if v is None:
            return v
        v = v.strip()
        if v.startswith("#"):
            v = v[1:]
        return v or None

    @model_validator(mode="after")
    def check_range(self):
        if (self.date_from is None) != (self.date_upto is None):
            raise ValueError("dateFrom and dateUpto must be given together")
        if self.date_from and self.date_upto and self.date_from > self.date_upto:
            raise ValueError("dateFrom must not be after dateUpto")
        return self
