# routes/projects.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError

from core.dependencies import get_analytics, get_projects
from core.errors import BadRequestError
from core.security import get_current_user
from models.models import User
from schemas.analytics_schema import BurndownRead
from schemas.project_schema import ProjectCreate, ProjectDetail, ProjectRead, ProjectUpdate, StarAction
from schemas.task_schema import Label, TaskListItem, TaskQuery
from schemas.user_schema import UserPublic
from services.analytics_service import AnalyticsAggregator
from services.project_service import ProjectService

router = APIRouter(tags=["Projects"])


def task_query(
    search: Optional[str] = Query(default=None),
    date_preset: Optional[str] = Query(default=None, alias="date"),
    date_from: Optional[date] = Query(default=None, alias="dateFrom"),
    date_upto: Optional[date] = Query(default=None, alias="dateUpto"),
    status: Optional[str] = Query(default=None),
    priority: Optional[str] = Query(default=None),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    order: int = Query(default=-1),
) -> TaskQuery:
    """Collect listing filters from the query string into a validated TaskQuery."""
    try:
        return TaskQuery(
            search=search,
            date_preset=date_preset or None,
            date_from=date_from,
            date_upto=date_upto,
            status=status or None,
            priority=priority,
            sort_by=sort_by or None,
            order=order,
        )
    except ValidationError as e:
        raise BadRequestError("Invalid task filters", {"errors": [err["msg"] for err in e.errors()]})


# ==================================================================
#  ✅ Create Project
# ==================================================================
@router.post("/{workspace_id}/projects", response_model=ProjectRead, status_code=201)
def create_project(
    workspace_id: int,
    data: ProjectCreate,
    current_user: User = Depends(get_current_user),
    projects: ProjectService = Depends(get_projects),
):
    project = projects.create(workspace_id, current_user.id, data.title, data.theme, data.description)
    return ProjectRead.model_validate(project)


# ==================================================================
#  ✅ Project Detail
# ==================================================================
@router.get("/{workspace_id}/projects/{project_id}", response_model=ProjectDetail)
def get_project(
    workspace_id: int,
    project_id: int,
    current_user: User = Depends(get_current_user),
    projects: ProjectService = Depends(get_projects),
):
    detail = projects.get_detail(workspace_id, project_id, current_user.id)
    return ProjectDetail(
        project=ProjectRead.model_validate(detail["project"]),
        workspace_members=[UserPublic.model_validate(user) for user in detail["workspace_members"]],
        workspace_admin=detail["workspace_admin"],
    )


# ==================================================================
#  ✅ Edit / Star / Delete Project
# ==================================================================
@router.put("/{workspace_id}/projects/{project_id}", response_model=ProjectRead)
def edit_project(
    workspace_id: int,
    project_id: int,
    data: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    projects: ProjectService = Depends(get_projects),
):
    project = projects.edit(workspace_id, project_id, current_user.id, data.title, data.theme, data.description)
    return ProjectRead.model_validate(project)


@router.patch("/{workspace_id}/projects/{project_id}/star", response_model=ProjectRead)
def star_project(
    workspace_id: int,
    project_id: int,
    data: StarAction,
    current_user: User = Depends(get_current_user),
    projects: ProjectService = Depends(get_projects),
):
    project = projects.star(workspace_id, project_id, current_user.id, data.action)
    return ProjectRead.model_validate(project)


@router.delete("/{workspace_id}/projects/{project_id}")
def delete_project(
    workspace_id: int,
    project_id: int,
    current_user: User = Depends(get_current_user),
    projects: ProjectService = Depends(get_projects),
):
    projects.delete(workspace_id, project_id, current_user.id)
    return {"success": True, "message": "Project deleted successfully"}


# ==================================================================
#  ✅ Task Listing (typed filters)
# ==================================================================
@router.get("/{workspace_id}/projects/{project_id}/tasks", response_model=List[TaskListItem])
def list_tasks(
    workspace_id: int,
    project_id: int,
    current_user: User = Depends(get_current_user),
    query: TaskQuery = Depends(task_query),
    projects: ProjectService = Depends(get_projects),
):
    rows = projects.list_tasks(workspace_id, project_id, current_user.id, query)
    return [
        TaskListItem(
            id=row["task"].id,
            title=row["task"].title,
            status=row["task"].status,
            priority=row["task"].priority,
            labels=[Label(**label) for label in row["task"].labels or []],
            due_date=row["task"].due_date,
            assignees=[UserPublic.model_validate(user) for user in row["assignees"]],
        )
        for row in rows
    ]


# ==================================================================
#  ✅ Burndown (current week)
# ==================================================================
@router.get("/{workspace_id}/projects/{project_id}/burndown", response_model=BurndownRead)
def get_burndown(
    workspace_id: int,
    project_id: int,
    current_user: User = Depends(get_current_user),
    projects: ProjectService = Depends(get_projects),
    analytics: AnalyticsAggregator = Depends(get_analytics),
):
    # same read gate as the project detail
    projects.get_detail(workspace_id, project_id, current_user.id)
    return analytics.compute_burndown(project_id)
