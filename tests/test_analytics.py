"""Tests for burndown, dashboard and home summaries."""

from datetime import datetime, timedelta

import pytest

from core.config import AnalyticsConfig
from models.models import Invitation, Task, UserRole, normalize_title
from schemas.analytics_schema import DateRange
from services.analytics_service import AnalyticsAggregator, burndown_points

# Wednesday; the week runs Monday 13th to Sunday 19th
NOW = datetime(2024, 5, 15, 10, 0)
MONDAY = datetime(2024, 5, 13)


@pytest.fixture
def analytics(session):
    return AnalyticsAggregator(session, AnalyticsConfig())


@pytest.fixture
def add_task(session):
    counter = {"n": 0}

    def _add(project, due_date, status="Not Started", completion_date=None):
        counter["n"] += 1
        title = f"Task {counter['n']}"
        task = Task(
            workspace_id=project.workspace_id,
            project_id=project.id,
            title=title,
            title_key=normalize_title(title),
            status=status,
            due_date=due_date,
            completion_date=completion_date,
        )
        session.add(task)
        session.commit()
        session.refresh(task)
        return task

    return _add


# =============================================================================
# Burndown
# =============================================================================


class TestBurndown:
    def test_nothing_completed(self, analytics, make_user, make_workspace, make_project, add_task):
        project = make_project(make_workspace(make_user()))
        for _ in range(7):
            add_task(project, due_date=MONDAY + timedelta(days=4))

        points = analytics.compute_burndown(project.id, now=NOW).burnoutData

        assert [p.date for p in points] == [
            "2024-05-13", "2024-05-14", "2024-05-15", "2024-05-16",
            "2024-05-17", "2024-05-18", "2024-05-19",
        ]
        assert [p.actualBurnDownData for p in points] == [7] * 7
        assert [p.idealBurnDownData for p in points] == [7, 5.0, 4.0, 3.0, 2.0, 1.0, 0.0]

    def test_completions_reduce_remaining_on_their_day(
        self, analytics, make_user, make_workspace, make_project, add_task
    ):
        project = make_project(make_workspace(make_user()))
        add_task(project, MONDAY + timedelta(days=2), status="Done", completion_date=MONDAY + timedelta(hours=9))
        add_task(project, MONDAY + timedelta(days=2), status="Done", completion_date=MONDAY + timedelta(days=1, hours=15))
        add_task(project, MONDAY + timedelta(days=5))

        points = analytics.compute_burndown(project.id, now=NOW).burnoutData

        assert [p.actualBurnDownData for p in points] == [2, 1, 1, 1, 1, 1, 1]
        assert points[0].idealBurnDownData == 3
        assert points[1].idealBurnDownData == round(3 - 2 * 3 / 7, 2)

    def test_tasks_outside_the_week_are_ignored(
        self, analytics, make_user, make_workspace, make_project, add_task
    ):
        project = make_project(make_workspace(make_user()))
        add_task(project, MONDAY - timedelta(days=1))
        add_task(project, MONDAY + timedelta(days=7))

        points = analytics.compute_burndown(project.id, now=NOW).burnoutData

        assert all(p.actualBurnDownData == 0 for p in points)
        assert all(p.idealBurnDownData == 0 for p in points)

    def test_reopened_task_does_not_count_as_completed(self):
        task = Task(
            workspace_id=1, project_id=1, title="a", title_key="a",
            status="In Progress", completion_date=MONDAY,
        )
        points = burndown_points([task], MONDAY)
        assert [p.actualBurnDownData for p in points] == [1] * 7


# =============================================================================
# Dashboard
# =============================================================================


class TestDashboard:
    def test_monthly_revenue_only_in_paid_months(self, analytics, make_user, make_subscription):
        user = make_user(role=UserRole.REGULAR)
        make_subscription(user, amount_paid=100.0, timestamp=datetime(2024, 3, 4))
        make_subscription(user, amount_paid=50.0, timestamp=datetime(2024, 3, 20))
        make_subscription(user, amount_paid=70.0, timestamp=datetime(2024, 11, 11))
        # previous year: counted in total revenue only
        make_subscription(user, amount_paid=30.0, timestamp=datetime(2023, 6, 1))

        result = analytics.dashboard(now=datetime(2024, 12, 1))

        assert result.monthlyRevenue[2] == 150.0
        assert result.monthlyRevenue[10] == 70.0
        assert [v for i, v in enumerate(result.monthlyRevenue) if i not in (2, 10)] == [0] * 10
        assert result.totalRevenue == 250.0
        assert result.premiumUsers == {"Pro": 3}

    def test_users_roles_and_signups(self, analytics, make_user):
        make_user(role=UserRole.REGULAR, timestamp=datetime(2024, 1, 10))
        make_user(role=UserRole.REGULAR, timestamp=datetime(2024, 1, 20))
        make_user(role=UserRole.TEAMLEAD, timestamp=datetime(2024, 4, 2))
        make_user(role=UserRole.ADMIN, timestamp=datetime(2024, 4, 3))

        result = analytics.dashboard(now=datetime(2024, 6, 1))

        assert result.totalUsers == 4
        assert result.userRoleNumbers == [2, 1]
        assert result.monthlyUserSignIns[0] == 2
        assert result.monthlyUserSignIns[3] == 2
        assert sum(result.monthlyUserSignIns) == 4

    def test_current_premium_counts_unexpired(self, analytics, make_user, make_subscription):
        user = make_user()
        make_subscription(user, end_date=datetime(2024, 7, 1))
        make_subscription(user, end_date=datetime(2024, 5, 1))

        result = analytics.dashboard(now=datetime(2024, 6, 1))
        assert result.currentPremiumUsers == 1

    def test_explicit_range_filters_months(self, analytics, make_user, make_subscription):
        user = make_user()
        make_subscription(user, amount_paid=10.0, timestamp=datetime(2024, 2, 5))
        make_subscription(user, amount_paid=20.0, timestamp=datetime(2024, 8, 5))

        window = DateRange(dateFrom=datetime(2024, 6, 1), dateTo=datetime(2024, 12, 31))
        result = analytics.dashboard(window, now=datetime(2024, 12, 1))

        assert result.monthlyRevenue[1] == 0
        assert result.monthlyRevenue[7] == 20.0
        assert result.totalRevenue == 30.0

    def test_range_needs_both_bounds(self):
        with pytest.raises(ValueError):
            DateRange(dateFrom=datetime(2024, 1, 1))


# =============================================================================
# Home
# =============================================================================


class TestHome:
    def test_counts_buckets_and_statuses(
        self, session, analytics, make_user, make_workspace, make_project, add_task
    ):
        user = make_user(email="me@example.com")
        workspace = make_workspace(user)
        make_project(workspace, title="Second")
        project = make_project(workspace)

        other_owner = make_user()
        invited_to = make_workspace(other_owner, title="Elsewhere")
        session.add(Invitation(workspace_id=invited_to.id, email="me@example.com"))
        session.commit()

        today_task = add_task(project, datetime(2024, 5, 15, 17))
        tomorrow_task = add_task(project, datetime(2024, 5, 16, 9))
        later_task = add_task(project, datetime(2024, 5, 19, 9), status="Done")
        add_task(project, datetime(2024, 5, 21), status="Stuck")

        home = analytics.home(user, now=NOW)

        assert home.result.totalWorkspaces == 1
        assert home.result.newInvitations == 1
        assert home.result.totalProjects == 2
        assert [t.id for t in home.tasks.tasksDueToday] == [today_task.id]
        assert [t.id for t in home.tasks.tasksDueTomorrow] == [tomorrow_task.id]
        assert [t.id for t in home.tasks.tasksDueThisWeek] == [tomorrow_task.id, later_task.id]
        assert home.taskStatusCounts == {"Not Started": 2, "In Progress": 0, "Stuck": 1, "Done": 1}

    def test_user_without_workspaces_gets_zeroed_counts(self, analytics, make_user):
        home = analytics.home(make_user(), now=NOW)

        assert home.result.totalWorkspaces == 0
        assert home.taskStatusCounts == {"Not Started": 0, "In Progress": 0, "Stuck": 0, "Done": 0}
        assert home.tasks.tasksDueToday == []
