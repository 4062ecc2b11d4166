# project_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Literal
from datetime import datetime

from schemas.user_schema import UserPublic


class ProjectCreate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=100)
    theme: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    # workspace_id is taken from the path


class ProjectUpdate(ProjectCreate):
    pass


class StarAction(BaseModel):
    action: Literal[0, 1]


class ProjectRead(BaseModel):
    id: int
    workspace_id: int
    title: str = Field(..., max_length=100)
    theme: str
    description: Optional[str] = Field(default=None, max_length=500)
    starred: bool = False
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectDetail(BaseModel):
    project: ProjectRead
    workspace_members: List[UserPublic] = Field(default_factory=list)
    workspace_admin: int
