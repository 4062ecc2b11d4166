# analytics_schema.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, List, Dict
from datetime import datetime


# ============================================================
# ✅ Burndown
# ============================================================
class BurndownPoint(BaseModel):
    date: str
    actualBurnDownData: int
    idealBurnDownData: float


class BurndownRead(BaseModel):
    burnoutData: List[BurndownPoint] = Field(default_factory=list)


# ============================================================
# ✅ Dashboard (platform admin)
# ============================================================
class DateRange(BaseModel):
    """Inclusive [date_from, date_to] window; both bounds or neither."""

    date_from: Optional[datetime] = Field(default=None, alias="dateFrom")
    date_to: Optional[datetime] = Field(default=None, alias="dateTo")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_bounds(self):
        if (self.date_from is None) != (self.date_to is None):
            raise ValueError("dateFrom and dateTo must be given together")
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("dateFrom must not be after dateTo")
        return self


class DashboardRead(BaseModel):
    totalRevenue: float = 0.0
    totalUsers: int = 0
    currentPremiumUsers: int = 0
    monthlyRevenue: List[float] = Field(default_factory=lambda: [0.0] * 12)
    monthlyUserSignIns: List[int] = Field(default_factory=lambda: [0] * 12)
    # label order: regular, teamlead
    userRoleNumbers: List[int] = Field(default_factory=lambda: [0, 0])
    premiumUsers: Dict[str, int] = Field(default_factory=dict)


# ============================================================
# ✅ Home (per user)
# ============================================================
class TaskBrief(BaseModel):
    id: int
    title: str
    workspace_id: int
    project_id: int


class HomeCounts(BaseModel):
    totalWorkspaces: int = 0
    newInvitations: int = 0
    totalProjects: int = 0


class HomeTasks(BaseModel):
    tasksDueToday: List[TaskBrief] = Field(default_factory=list)
    tasksDueTomorrow: List[TaskBrief] = Field(default_factory=list)
    tasksDueThisWeek: List[TaskBrief] = Field(default_factory=list)


class HomeRead(BaseModel):
    result: HomeCounts
    taskStatusCounts: Dict[str, int]
    tasks: HomeTasks
