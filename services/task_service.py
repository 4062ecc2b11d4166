# services/task_service.py
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from core.database import commit_or_raise, flush_or_raise
from core.errors import BadRequestError, ConflictError, NotFoundError
from models.models import (
    Project,
    Task,
    TaskAttachment,
    TaskComment,
    TaskMemberLink,
    TaskMemberRole,
    TaskStatus,
    User,
    normalize_title,
    utcnow,
)
from schemas.task_schema import TaskCreate, TaskUpdate
from services.authorization import RoleAuthorizationGate
from services.storage_service import ObjectStorage

logger = logging.getLogger(__name__)

DUPLICATE_TASK = "Task with same title already exists in this project, please enter a different title"


def apply_status_transition(task: Task, new_status, now: Optional[datetime] = None) -> Task:
    """
    Set `task.status` and stamp `completion_date` on entry into Done.

    The previous status is read from the task as currently persisted, never
    from client input. Leaving Done keeps the old completion date.
    """
    new_status = getattr(new_status, "value", new_status)
    done = TaskStatus.DONE.value
    if new_status == done and task.status != done:
        task.completion_date = now or utcnow()
    task.status = new_status
    return task


def purge_tasks(session: Session, task_ids: List[int]) -> List[str]:
    """
    Stage deletion of tasks and their comments, attachments and member links.
    Returns the attachment keys so the caller can drop the stored objects
    once the transaction has committed.
    """
    if not task_ids:
        return []

    keys = list(
        session.exec(select(TaskAttachment.key).where(TaskAttachment.task_id.in_(task_ids))).all()
    )
    session.exec(delete(TaskComment).where(TaskComment.task_id.in_(task_ids)))
    session.exec(delete(TaskAttachment).where(TaskAttachment.task_id.in_(task_ids)))
    session.exec(delete(TaskMemberLink).where(TaskMemberLink.task_id.in_(task_ids)))
    session.exec(delete(Task).where(Task.id.in_(task_ids)))
    return keys


class TaskLifecycleEngine:
    def __init__(
        self,
        session: Session,
        storage: ObjectStorage,
        gate: Optional[RoleAuthorizationGate] = None,
    ):
        self.session = session
        self.storage = storage
        self.gate = gate or RoleAuthorizationGate(session)

    # ------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------
    def _project(self, workspace_id: int, project_id: int) -> Project:
        project = self.session.get(Project, project_id)
        if not project or project.workspace_id != workspace_id:
            raise NotFoundError("Project not found")
        return project

    def _task(self, workspace_id: int, project_id: int, task_id: int) -> Task:
        task = self.session.get(Task, task_id)
        if not task or task.workspace_id != workspace_id or task.project_id != project_id:
            raise NotFoundError("Task not found")
        return task

    def _title_taken(self, workspace_id: int, project_id: int, title_key: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Task.id).where(
            Task.workspace_id == workspace_id,
            Task.project_id == project_id,
            Task.title_key == title_key,
        )
        if exclude_id is not None:
            query = query.where(Task.id != exclude_id)
        return self.session.exec(query).first() is not None

    def _check_members(self, workspace_id: int, assignee_ids: List[int], reporter_ids: List[int]) -> None:
        outsiders = [
            user_id
            for user_id in dict.fromkeys([*assignee_ids, *reporter_ids])
            if not self.gate.is_collaborator(workspace_id, user_id)
        ]
        if outsiders:
            raise BadRequestError(
                "Assignees and reporters must be collaborators of this workspace",
                data={"invalidUserIds": outsiders},
            )

    def _set_members(self, task_id: int, assignee_ids: List[int], reporter_ids: List[int]) -> None:
        self.session.exec(delete(TaskMemberLink).where(TaskMemberLink.task_id == task_id))
        for role, user_ids in (
            (TaskMemberRole.ASSIGNEE.value, assignee_ids),
            (TaskMemberRole.REPORTER.value, reporter_ids),
        ):
            for user_id in dict.fromkeys(user_ids):
                self.session.add(TaskMemberLink(task_id=task_id, user_id=user_id, role=role))

    def member_ids(self, task_id: int) -> Dict[str, List[int]]:
        links = self.session.exec(
            select(TaskMemberLink).where(TaskMemberLink.task_id == task_id).order_by(TaskMemberLink.user_id)
        ).all()
        members = {TaskMemberRole.ASSIGNEE.value: [], TaskMemberRole.REPORTER.value: []}
        for link in links:
            members[link.role].append(link.user_id)
        return members

    def _apply_fields(self, task: Task, data: TaskCreate) -> None:
        task.description = data.description
        task.priority = data.priority.value
        task.start_date = data.start_date
        task.due_date = data.due_date
        task.labels = [label.model_dump() for label in data.labels]
        task.tags = list(data.tags)
        task.story_points = data.story_points

    # ============================================================
    # ✅ Create
    # ============================================================
    def create(
        self,
        workspace_id: int,
        project_id: int,
        acting_user_id: int,
        data: TaskCreate,
        now: Optional[datetime] = None,
    ) -> Task:
        title = (data.title or "").strip()
        if not title:
            raise BadRequestError("Task title is required!")

        self.gate.authorize(workspace_id, acting_user_id)
        self._project(workspace_id, project_id)
        self._check_members(workspace_id, data.assignee_ids, data.reporter_ids)

        title_key = normalize_title(title)
        if self._title_taken(workspace_id, project_id, title_key):
            logger.info("Duplicate task title %r in project %s", title, project_id)
            raise ConflictError(DUPLICATE_TASK)

        task = Task(workspace_id=workspace_id, project_id=project_id, title=title, title_key=title_key)
        self._apply_fields(task, data)
        # a fresh task starts from Not Started, so creating it as Done stamps the date
        apply_status_transition(task, data.status, now)

        self.session.add(task)
        flush_or_raise(self.session, "creating the task", conflict_message=DUPLICATE_TASK)
        self._set_members(task.id, data.assignee_ids, data.reporter_ids)

        commit_or_raise(self.session, "creating the task", conflict_message=DUPLICATE_TASK)
        self.session.refresh(task)
        logger.info("Task %s created in project %s", task.id, project_id)
        return task

    # ============================================================
    # ✅ Edit
    # ============================================================
    def edit(
        self,
        workspace_id: int,
        project_id: int,
        task_id: int,
        acting_user_id: int,
        data: TaskUpdate,
        now: Optional[datetime] = None,
    ) -> Task:
        title = (data.title or "").strip()
        if not title:
            raise BadRequestError("Task title is required!")

        self.gate.authorize(workspace_id, acting_user_id)
        task = self._task(workspace_id, project_id, task_id)
        self._check_members(workspace_id, data.assignee_ids, data.reporter_ids)

        title_key = normalize_title(title)
        if self._title_taken(workspace_id, project_id, title_key, exclude_id=task.id):
            raise ConflictError(DUPLICATE_TASK)

        task.title = title
        task.title_key = title_key
        self._apply_fields(task, data)
        apply_status_transition(task, data.status, now)
        self._set_members(task.id, data.assignee_ids, data.reporter_ids)

        self.session.add(task)
        commit_or_raise(self.session, "updating the task", conflict_message=DUPLICATE_TASK)
        self.session.refresh(task)
        return task

    # ============================================================
    # ✅ Narrow mutators (any collaborator)
    # ============================================================
    def update_status(
        self,
        workspace_id: int,
        project_id: int,
        task_id: int,
        acting_user_id: int,
        status,
        now: Optional[datetime] = None,
    ) -> Task:
        self.gate.authorize_member(workspace_id, acting_user_id)
        task = self._task(workspace_id, project_id, task_id)

        apply_status_transition(task, status, now)
        self.session.add(task)
        commit_or_raise(self.session, "updating the task status")
        self.session.refresh(task)
        logger.info("Task %s moved to %s", task_id, task.status)
        return task

    def update_priority(self, workspace_id: int, project_id: int, task_id: int, acting_user_id: int, priority) -> Task:
        self.gate.authorize_member(workspace_id, acting_user_id)
        task = self._task(workspace_id, project_id, task_id)

        task.priority = getattr(priority, "value", priority)
        self.session.add(task)
        commit_or_raise(self.session, "updating the task priority")
        self.session.refresh(task)
        return task

    # ============================================================
    # ✅ Delete (cascade)
    # ============================================================
    def delete(self, workspace_id: int, project_id: int, task_id: int, acting_user_id: int) -> None:
        self.gate.authorize(workspace_id, acting_user_id)
        task = self._task(workspace_id, project_id, task_id)

        keys = purge_tasks(self.session, [task.id])
        commit_or_raise(self.session, "deleting the task")

        removed = self.storage.delete_many(keys)
        logger.info("Task %s deleted (%s attachment(s) removed)", task_id, removed)

    # ============================================================
    # ✅ Reads / comments
    # ============================================================
    def _users(self, user_ids: List[int]) -> List[User]:
        if not user_ids:
            return []
        return list(self.session.exec(select(User).where(User.id.in_(user_ids)).order_by(User.id)).all())

    def get_detail(self, workspace_id: int, project_id: int, task_id: int, acting_user_id: int) -> dict:
        self.gate.authorize_member(workspace_id, acting_user_id, mutating=False)
        task = self._task(workspace_id, project_id, task_id)

        members = self.member_ids(task.id)
        attachments = self.session.exec(
            select(TaskAttachment).where(TaskAttachment.task_id == task.id).order_by(TaskAttachment.id)
        ).all()
        comments = self.session.exec(
            select(TaskComment, User)
            .join(User, User.id == TaskComment.user_id, isouter=True)
            .where(TaskComment.task_id == task.id)
            .order_by(TaskComment.timestamp, TaskComment.id)
        ).all()

        return {
            "task": task,
            "assignee_ids": members[TaskMemberRole.ASSIGNEE.value],
            "reporter_ids": members[TaskMemberRole.REPORTER.value],
            "assignees": self._users(members[TaskMemberRole.ASSIGNEE.value]),
            "reporters": self._users(members[TaskMemberRole.REPORTER.value]),
            "attachments": list(attachments),
            "comments": list(comments),
        }

    def add_comment(self, workspace_id: int, project_id: int, task_id: int, acting_user_id: int, text: str) -> TaskComment:
        self.gate.authorize_member(workspace_id, acting_user_id)
        task = self._task(workspace_id, project_id, task_id)

        text = text.strip()
        if not text:
            raise BadRequestError("Comment text is required!")

        comment = TaskComment(task_id=task.id, user_id=acting_user_id, text=text)
        self.session.add(comment)
        commit_or_raise(self.session, "adding the comment")
        self.session.refresh(comment)
        return comment
