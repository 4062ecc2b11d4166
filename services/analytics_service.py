# services/analytics_service.py
import logging
from datetime import datetime, time, timedelta
from typing import Dict, List, Optional

from sqlalchemy import extract
from sqlmodel import Session, select, func

from core.config import AnalyticsConfig
from core.errors import NotFoundError
from models.models import (
    Invitation,
    InvitationStatus,
    Project,
    Task,
    TaskStatus,
    User,
    UserRole,
    UserSubscription,
    WorkspaceCollaborator,
    utcnow,
)
from schemas.analytics_schema import (
    BurndownPoint,
    BurndownRead,
    DashboardRead,
    DateRange,
    HomeCounts,
    HomeRead,
    HomeTasks,
    TaskBrief,
)
from services.project_service import start_of_week

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7

# label order: regular, teamlead
ROLE_SLOTS = (UserRole.REGULAR.value, UserRole.TEAMLEAD.value)


def burndown_points(tasks: List[Task], week_start: datetime) -> List[BurndownPoint]:
    """
    Actual vs ideal remaining tasks for each day of the week starting at
    `week_start`. `tasks` are the tasks due inside that week.
    """
    total = len(tasks)
    ideal_per_day = total / DAYS_IN_WEEK
    done = TaskStatus.DONE.value

    completed_per_day: Dict = {}
    for task in tasks:
        if task.status == done and task.completion_date:
            day = task.completion_date.date()
            completed_per_day[day] = completed_per_day.get(day, 0) + 1

    points = []
    remaining = total
    for index in range(DAYS_IN_WEEK):
        day_number = index + 1
        current = (week_start + timedelta(days=index)).date()

        remaining = max(remaining - completed_per_day.get(current, 0), 0)
        ideal = total if day_number == 1 else total - day_number * ideal_per_day

        points.append(
            BurndownPoint(
                date=current.isoformat(),
                actualBurnDownData=remaining,
                idealBurnDownData=round(max(ideal, 0), 2),
            )
        )
    return points


class AnalyticsAggregator:
    """Read-only summaries over tasks, subscriptions and users."""

    def __init__(self, session: Session, config: Optional[AnalyticsConfig] = None):
        self.session = session
        self.config = config or AnalyticsConfig()

    def _week_bounds(self, now: datetime):
        start = start_of_week(now, self.config.week_start_day)
        return start, start + timedelta(days=DAYS_IN_WEEK)

    # ============================================================
    # ✅ Burndown (per project, current week)
    # ============================================================
    def compute_burndown(self, project_id: int, now: Optional[datetime] = None) -> BurndownRead:
        if not self.session.get(Project, project_id):
            raise NotFoundError("Project not found")

        week_start, week_end = self._week_bounds(now or utcnow())
        tasks = self.session.exec(
            select(Task).where(
                Task.project_id == project_id,
                Task.due_date >= week_start,
                Task.due_date < week_end,
            )
        ).all()

        return BurndownRead(burnoutData=burndown_points(list(tasks), week_start))

    # ============================================================
    # ✅ Dashboard (platform admin)
    # ============================================================
    def dashboard(self, date_range: Optional[DateRange] = None, now: Optional[datetime] = None) -> DashboardRead:
        now = now or utcnow()
        if date_range and date_range.date_from and date_range.date_to:
            start, end = date_range.date_from, date_range.date_to
        else:
            start = datetime(now.year, 1, 1)
            end = datetime(now.year, 12, 31, 23, 59, 59, 999999)

        result = DashboardRead()
        result.totalUsers = self.session.exec(select(func.count(User.id))).one()
        # lifetime revenue, not limited to the window
        result.totalRevenue = float(
            self.session.exec(select(func.coalesce(func.sum(UserSubscription.amount_paid), 0))).one()
        )
        result.currentPremiumUsers = self.session.exec(
            select(func.count(UserSubscription.id)).where(UserSubscription.end_date >= now)
        ).one()

        in_window = (UserSubscription.timestamp >= start, UserSubscription.timestamp <= end)

        month = extract("month", UserSubscription.timestamp)
        for month_number, amount in self.session.exec(
            select(month, func.sum(UserSubscription.amount_paid)).where(*in_window).group_by(month)
        ).all():
            index = int(month_number) - 1
            if 0 <= index < 12:
                result.monthlyRevenue[index] = float(amount or 0)

        for plan_title, count in self.session.exec(
            select(UserSubscription.plan_title, func.count(UserSubscription.id))
            .where(*in_window)
            .group_by(UserSubscription.plan_title)
        ).all():
            result.premiumUsers[plan_title] = count

        users_in_window = (User.timestamp >= start, User.timestamp <= end)

        signup_month = extract("month", User.timestamp)
        for month_number, count in self.session.exec(
            select(signup_month, func.count(User.id)).where(*users_in_window).group_by(signup_month)
        ).all():
            index = int(month_number) - 1
            if 0 <= index < 12:
                result.monthlyUserSignIns[index] = count

        for role, count in self.session.exec(
            select(User.role, func.count(User.id)).where(*users_in_window).group_by(User.role)
        ).all():
            if role in ROLE_SLOTS:
                result.userRoleNumbers[ROLE_SLOTS.index(role)] = count

        return result

    # ============================================================
    # ✅ Home (per user)
    # ============================================================
    def home(self, user: User, now: Optional[datetime] = None) -> HomeRead:
        now = now or utcnow()

        workspace_ids = list(
            self.session.exec(
                select(WorkspaceCollaborator.workspace_id).where(WorkspaceCollaborator.user_id == user.id)
            ).all()
        )

        counts = HomeCounts(totalWorkspaces=len(workspace_ids))
        counts.newInvitations = self.session.exec(
            select(func.count(Invitation.id)).where(
                Invitation.email == user.email.strip().lower(),
                Invitation.status == InvitationStatus.PENDING.value,
            )
        ).one()

        status_counts = {status.value: 0 for status in TaskStatus}
        tasks = HomeTasks()
        if not workspace_ids:
            return HomeRead(result=counts, taskStatusCounts=status_counts, tasks=tasks)

        counts.totalProjects = self.session.exec(
            select(func.count(Project.id)).where(Project.workspace_id.in_(workspace_ids))
        ).one()

        for status, count in self.session.exec(
            select(Task.status, func.count(Task.id))
            .where(Task.workspace_id.in_(workspace_ids))
            .group_by(Task.status)
        ).all():
            status_counts[status] = count

        today = datetime.combine(now.date(), time.min)
        tomorrow = today + timedelta(days=1)
        _, week_end = self._week_bounds(now)

        tasks.tasksDueToday = self._due_between(workspace_ids, today, tomorrow)
        tasks.tasksDueTomorrow = self._due_between(workspace_ids, tomorrow, tomorrow + timedelta(days=1))
        tasks.tasksDueThisWeek = self._due_between(workspace_ids, tomorrow, week_end)

        return HomeRead(result=counts, taskStatusCounts=status_counts, tasks=tasks)

    def _due_between(self, workspace_ids: List[int], start: datetime, end: datetime) -> List[TaskBrief]:
        rows = self.session.exec(
            select(Task)
            .where(
                Task.workspace_id.in_(workspace_ids),
                Task.due_date >= start,
                Task.due_date < end,
            )
            .order_by(Task.due_date, Task.id)
        ).all()
        return [
            TaskBrief(id=task.id, title=task.title, workspace_id=task.workspace_id, project_id=task.project_id)
            for task in rows
        ]
