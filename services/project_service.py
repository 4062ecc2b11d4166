# services/project_service.py
import logging
from datetime import datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import delete, or_, cast, String
from sqlmodel import Session, select

from core.config import AnalyticsConfig
from core.database import commit_or_raise
from core.errors import BadRequestError, ConflictError, NotFoundError
from models.models import (
    Project,
    Task,
    TaskMemberLink,
    TaskMemberRole,
    User,
    normalize_title,
    utcnow,
)
from schemas.task_schema import TaskQuery
from services.authorization import RoleAuthorizationGate
from services.storage_service import ObjectStorage
from services.task_service import purge_tasks

logger = logging.getLogger(__name__)

DUPLICATE_PROJECT = "Project with same title already exists in this workspace, please enter a different title"


def start_of_week(day: datetime, week_start_day: int = 0) -> datetime:
    """Midnight of the first day of the calendar week containing `day` (0 = Monday)."""
    midnight = datetime.combine(day.date(), time.min)
    return midnight - timedelta(days=(midnight.weekday() - week_start_day) % 7)


def due_window(preset: str, now: datetime, week_start_day: int = 0):
    """Half-open [start, end) window on due dates for a listing preset."""
    today = datetime.combine(now.date(), time.min)
    tomorrow = today + timedelta(days=1)

    if preset == "today":
        return today, tomorrow
    if preset == "thisweek":
        # from tomorrow up to the start of next week; today has its own preset
        return tomorrow, start_of_week(now, week_start_day) + timedelta(days=7)
    if preset == "thismonth":
        start = today.replace(day=1)
        if start.month == 12:
            end = start.replace(year=start.year + 1, month=1)
        else:
            end = start.replace(month=start.month + 1)
        return start, end
    raise BadRequestError(f"Unknown date preset: {preset}")


class ProjectService:
    def __init__(
        self,
        session: Session,
        storage: ObjectStorage,
        config: Optional[AnalyticsConfig] = None,
        gate: Optional[RoleAuthorizationGate] = None,
    ):
        self.session = session
        self.storage = storage
        self.config = config or AnalyticsConfig()
        self.gate = gate or RoleAuthorizationGate(session)

    def _project(self, workspace_id: int, project_id: int) -> Project:
        project = self.session.get(Project, project_id)
        if not project or project.workspace_id != workspace_id:
            raise NotFoundError("Project not found")
        return project

    def _title_taken(self, workspace_id: int, title_key: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Project.id).where(
            Project.workspace_id == workspace_id,
            Project.title_key == title_key,
        )
        if exclude_id is not None:
            query = query.where(Project.id != exclude_id)
        return self.session.exec(query).first() is not None

    @staticmethod
    def _require(title: Optional[str], theme: Optional[str]):
        title = (title or "").strip()
        if not title or not theme:
            raise BadRequestError("Project title and theme are required!")
        return title

    # ============================================================
    # ✅ Create / Edit
    # ============================================================
    def create(self, workspace_id: int, acting_user_id: int, title, theme, description=None) -> Project:
        title = self._require(title, theme)
        self.gate.authorize(workspace_id, acting_user_id)

        title_key = normalize_title(title)
        if self._title_taken(workspace_id, title_key):
            logger.info("Duplicate project title %r in workspace %s", title, workspace_id)
            raise ConflictError(DUPLICATE_PROJECT)

        project = Project(
            workspace_id=workspace_id,
            title=title,
            title_key=title_key,
            theme=theme,
            description=description,
        )
        self.session.add(project)
        commit_or_raise(self.session, "creating the project", conflict_message=DUPLICATE_PROJECT)
        self.session.refresh(project)
        logger.info("Project %s created in workspace %s", project.id, workspace_id)
        return project

    def edit(self, workspace_id: int, project_id: int, acting_user_id: int, title, theme, description=None) -> Project:
        title = self._require(title, theme)
        self.gate.authorize(workspace_id, acting_user_id)
        project = self._project(workspace_id, project_id)

        title_key = normalize_title(title)
        if self._title_taken(workspace_id, title_key, exclude_id=project.id):
            raise ConflictError(DUPLICATE_PROJECT)

        project.title = title
        project.title_key = title_key
        project.theme = theme
        project.description = description
        self.session.add(project)
        commit_or_raise(self.session, "updating the project", conflict_message=DUPLICATE_PROJECT)
        self.session.refresh(project)
        return project

    def star(self, workspace_id: int, project_id: int, acting_user_id: int, action: int) -> Project:
        self.gate.authorize(workspace_id, acting_user_id)
        project = self._project(workspace_id, project_id)

        project.starred = bool(action)
        self.session.add(project)
        commit_or_raise(self.session, "starring the project")
        self.session.refresh(project)
        return project

    # ============================================================
    # ✅ Delete (cascade tasks)
    # ============================================================
    def delete(self, workspace_id: int, project_id: int, acting_user_id: int) -> None:
        self.gate.authorize(workspace_id, acting_user_id)
        project = self._project(workspace_id, project_id)

        task_ids = self.session.exec(select(Task.id).where(Task.project_id == project.id)).all()
        keys = purge_tasks(self.session, list(task_ids))
        self.session.exec(delete(Project).where(Project.id == project.id))
        commit_or_raise(self.session, "deleting the project")

        self.storage.delete_many(keys)
        logger.info("Project %s deleted with %s task(s)", project_id, len(task_ids))

    # ============================================================
    # ✅ Reads
    # ============================================================
    def get_detail(self, workspace_id: int, project_id: int, acting_user_id: int) -> dict:
        workspace = self.gate.authorize_member(workspace_id, acting_user_id, mutating=False)
        project = self._project(workspace_id, project_id)

        members = self.gate.members(workspace.id)
        return {"project": project, "workspace_members": members, "workspace_admin": workspace.owner_id}

    def list_tasks(
        self,
        workspace_id: int,
        project_id: int,
        acting_user_id: int,
        query: TaskQuery,
        now: Optional[datetime] = None,
    ) -> List[dict]:
        self.gate.authorize_member(workspace_id, acting_user_id, mutating=False)
        self._project(workspace_id, project_id)
        now = now or utcnow()

        statement = select(Task).where(Task.workspace_id == workspace_id, Task.project_id == project_id)

        if query.search:
            pattern = f"%{query.search}%"
            statement = statement.where(or_(Task.title.ilike(pattern), cast(Task.tags, String).ilike(pattern)))

        if query.date_from and query.date_upto:
            start = datetime.combine(query.date_from, time.min)
            end = datetime.combine(query.date_upto, time.max)
            statement = statement.where(Task.due_date >= start, Task.due_date <= end)
        elif query.date_preset:
            start, end = due_window(query.date_preset, now, self.config.week_start_day)
            statement = statement.where(Task.due_date >= start, Task.due_date < end)

        if query.status:
            statement = statement.where(Task.status == query.status.value)
        if query.priority is not None:
            statement = statement.where(Task.priority == query.priority.value)

        column = getattr(Task, query.sort_by or "timestamp")
        direction = query.order if query.sort_by else -1
        if direction == 1:
            statement = statement.order_by(column.asc(), Task.id.asc())
        else:
            statement = statement.order_by(column.desc(), Task.id.desc())

        tasks = self.session.exec(statement).all()
        return [{"task": task, "assignees": self._assignees(task.id)} for task in tasks]

    def _assignees(self, task_id: int) -> List[User]:
        return list(
            self.session.exec(
                select(User)
                .join(TaskMemberLink, TaskMemberLink.user_id == User.id)
                .where(
                    TaskMemberLink.task_id == task_id,
                    TaskMemberLink.role == TaskMemberRole.ASSIGNEE.value,
                )
                .order_by(User.id)
            ).all()
        )
