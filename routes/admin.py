# routes/admin.py
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError

from core.config import settings
from core.dependencies import get_analytics, get_workspaces
from core.errors import BadRequestError
from core.security import IdentityContext, get_current_admin
from schemas.analytics_schema import DashboardRead, DateRange
from schemas.workspace_schema import AdminWorkspacePage, AdminWorkspaceQuery, FreezeAction, WorkspaceRead
from services.analytics_service import AnalyticsAggregator
from services.workspace_service import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])


def _errors(e: ValidationError):
    return {"errors": [err["msg"] for err in e.errors()]}


def date_range(
    date_from: Optional[datetime] = Query(default=None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(default=None, alias="dateTo"),
) -> DateRange:
    try:
        return DateRange(date_from=date_from, date_to=date_to)
    except ValidationError as e:
        raise BadRequestError("Invalid date range", _errors(e))


def admin_workspace_query(
    page: int = Query(default=1),
    search: Optional[str] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None, alias="startDate"),
    end_date: Optional[datetime] = Query(default=None, alias="endDate"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    order: str = Query(default="asc"),
) -> AdminWorkspaceQuery:
    try:
        return AdminWorkspaceQuery(
            page=page,
            search=search or None,
            start_date=start_date,
            end_date=end_date,
            sort_by=sort_by or None,
            order=order,
        )
    except ValidationError as e:
        raise BadRequestError("Invalid workspace filters", _errors(e))


# ==================================================================
#  ✅ Dashboard
# ==================================================================
@router.get("/dashboard", response_model=DashboardRead)
def get_dashboard(
    admin: IdentityContext = Depends(get_current_admin),
    window: DateRange = Depends(date_range),
    analytics: AnalyticsAggregator = Depends(get_analytics),
):
    return analytics.dashboard(window)


# ==================================================================
#  ✅ Workspaces (paginated) + Freeze
# ==================================================================
@router.get("/workspaces", response_model=AdminWorkspacePage)
def list_workspaces(
    admin: IdentityContext = Depends(get_current_admin),
    query: AdminWorkspaceQuery = Depends(admin_workspace_query),
    workspaces: WorkspaceService = Depends(get_workspaces),
):
    return workspaces.admin_list(query, settings.ADMIN_PAGE_SIZE)


@router.patch("/workspaces/{workspace_id}/freeze", response_model=WorkspaceRead)
def freeze_workspace(
    workspace_id: int,
    data: FreezeAction,
    admin: IdentityContext = Depends(get_current_admin),
    workspaces: WorkspaceService = Depends(get_workspaces),
):
    workspace = workspaces.set_frozen(workspace_id, data.action)
    logger.info("Admin %s set %s on workspace %s", admin.user_id, data.action, workspace_id)
    return WorkspaceRead.model_validate(workspace)
