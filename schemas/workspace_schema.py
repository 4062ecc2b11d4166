# workspace_schema.py
from pydantic import BaseModel, EmailStr, Field, ConfigDict, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime

from models.models import WorkspaceType
from schemas.project_schema import ProjectRead
from schemas.invitation_schema import InvitationRead
from schemas.user_schema import UserPublic


# ============================================================
# ✅ Create / Update (input)
# ============================================================
class WorkspaceCreate(BaseModel):
    # title/type presence is enforced by the service so the error
    # carries the same shape as every other business failure
    title: Optional[str] = Field(default=None, max_length=100)
    type: Optional[WorkspaceType] = None
    description: Optional[str] = Field(default=None, max_length=500)
    emails: List[EmailStr] = Field(default_factory=list)

    @field_validator("emails", mode="before")
    @classmethod
    def validate_emails(cls, v):
        if v is None:
            return []
        return v


class WorkspaceUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=100)
    type: Optional[WorkspaceType] = None
    description: Optional[str] = Field(default=None, max_length=500)


class FreezeAction(BaseModel):
    action: Literal["freez", "unfreez"]


# ============================================================
# ✅ Read (output)
# ============================================================
class WorkspaceSummary(BaseModel):
    id: int
    title: str

    model_config = ConfigDict(from_attributes=True)


class WorkspaceRead(BaseModel):
    id: int
    title: str
    type: str
    description: Optional[str] = None
    owner_id: int
    freezed: bool = False
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class PendingInvitationRead(BaseModel):
    """An invitation addressed to the current user, seen from their side."""

    workspace_id: int
    title: str
    workspace_admin: Optional[str] = None
    invitation_id: int
    status: str
    timestamp: datetime


class UserWorkspacesRead(BaseModel):
    workspaces: List[WorkspaceSummary] = Field(default_factory=list)
    invitations: List[PendingInvitationRead] = Field(default_factory=list)


class WorkspaceDetail(BaseModel):
    workspace: WorkspaceRead
    admin: Optional[UserPublic] = None
    collaborators: List[UserPublic] = Field(default_factory=list)
    invitations: List[InvitationRead] = Field(default_factory=list)
    projects: List[ProjectRead] = Field(default_factory=list)


class WorkspaceCreated(BaseModel):
    workspace: WorkspaceSummary
    invitations: List[InvitationRead] = Field(default_factory=list)


# ============================================================
# ✅ Admin listing (typed query + page)
# ============================================================
AdminWorkspaceSort = Literal["title", "admin", "date", "numOfCollaborators", "numOfProjects", "numOfTasks"]


class AdminWorkspaceQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    search: Optional[str] = Field(default=None, max_length=100)
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")
    sort_by: Optional[AdminWorkspaceSort] = Field(default=None, alias="sortBy")
    order: Literal["asc", "desc"] = "asc"

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class AdminWorkspaceRow(BaseModel):
    slno: int
    id: int
    title: str
    type: str
    admin: Optional[str] = None
    collaborators_count: int
    projects_count: int
    tasks_count: int
    freezed: bool
    timestamp: datetime


class AdminWorkspaceAnalytics(BaseModel):
    total_workspaces: int
    total_projects: int
    total_tasks: int


class AdminWorkspacePage(BaseModel):
    analytics: AdminWorkspaceAnalytics
    workspaces: List[AdminWorkspaceRow] = Field(default_factory=list)
    total_pages: int
    total_workspaces: int
