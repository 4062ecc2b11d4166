# services/workspace_service.py
import logging
import math
from typing import List, Optional, Tuple

from sqlalchemy import delete
from sqlmodel import Session, select, func

from core.database import commit_or_raise, flush_or_raise
from core.errors import BadRequestError, ConflictError, NotFoundError
from models.models import (
    User,
    Workspace,
    WorkspaceCollaborator,
    Invitation,
    Project,
    Task,
    normalize_title,
)
from schemas.workspace_schema import (
    AdminWorkspaceQuery,
    AdminWorkspaceRow,
    AdminWorkspaceAnalytics,
    AdminWorkspacePage,
)
from services.authorization import RoleAuthorizationGate
from services.invitation_service import InvitationStateMachine, normalize_emails, add_collaborator
from services.quota_service import WorkspaceQuotaManager
from services.storage_service import ObjectStorage
from services.task_service import purge_tasks

logger = logging.getLogger(__name__)

DUPLICATE_WORKSPACE = "Workspace with same title already exists, please enter a different title"


class WorkspaceService:
    def __init__(
        self,
        session: Session,
        quota: WorkspaceQuotaManager,
        storage: ObjectStorage,
        gate: Optional[RoleAuthorizationGate] = None,
    ):
        self.session = session
        self.quota = quota
        self.storage = storage
        self.gate = gate or RoleAuthorizationGate(session)
        self.invitations = InvitationStateMachine(session, quota, self.gate)

    def _title_taken(self, owner_id: int, title_key: str, exclude_id: Optional[int] = None) -> bool:
        query = select(Workspace.id).where(
            Workspace.owner_id == owner_id,
            Workspace.title_key == title_key,
        )
        if exclude_id is not None:
            query = query.where(Workspace.id != exclude_id)
        return self.session.exec(query).first() is not None

    # ============================================================
    # ✅ Create
    # ============================================================
    def create(
        self,
        owner_id: int,
        title: Optional[str],
        type: Optional[str],
        description: Optional[str] = None,
        emails: Optional[List[str]] = None,
    ) -> Tuple[Workspace, List[Invitation]]:
        """
        Create a workspace with its initial invitations in one transaction.

        The owner row is locked first so concurrent creations by the same
        owner see each other's inserts before the quota count runs. Nothing
        is persisted when any check fails.
        """
        title = (title or "").strip()
        if not title or not type:
            raise BadRequestError("Workspace title and type are required!")

        emails = normalize_emails(emails or [])

        self.session.exec(select(User.id).where(User.id == owner_id).with_for_update()).first()

        self.quota.ensure_can_create_workspace(owner_id)
        self.quota.ensure_can_add_collaborators(owner_id, len(emails))

        title_key = normalize_title(title)
        if self._title_taken(owner_id, title_key):
            logger.info("Duplicate workspace title %r for owner %s", title, owner_id)
            raise ConflictError(DUPLICATE_WORKSPACE)

        workspace = Workspace(
            title=title,
            title_key=title_key,
            owner_id=owner_id,
            type=getattr(type, "value", type),
            description=description,
        )
        self.session.add(workspace)
        # flush to obtain the id for dependent rows; commit happens once below
        flush_or_raise(self.session, "creating the workspace", conflict_message=DUPLICATE_WORKSPACE)

        add_collaborator(self.session, workspace.id, owner_id)
        invitations = self.invitations.stage(workspace.id, emails)

        commit_or_raise(self.session, "creating the workspace", conflict_message=DUPLICATE_WORKSPACE)
        self.session.refresh(workspace)
        for invitation in invitations:
            self.session.refresh(invitation)

        logger.info("Workspace %s created by %s with %s invitation(s)", workspace.id, owner_id, len(invitations))
        return workspace, invitations

    # ============================================================
    # ✅ Edit
    # ============================================================
    def edit(
        self,
        workspace_id: int,
        acting_user_id: int,
        title: Optional[str],
        type: Optional[str],
        description: Optional[str] = None,
    ) -> Workspace:
        title = (title or "").strip()
        if not title or not type:
            raise BadRequestError("Workspace title and type are required!")

        workspace = self.gate.authorize(workspace_id, acting_user_id)

        title_key = normalize_title(title)
        if self._title_taken(workspace.owner_id, title_key, exclude_id=workspace.id):
            raise ConflictError(DUPLICATE_WORKSPACE)

        workspace.title = title
        workspace.title_key = title_key
        workspace.type = getattr(type, "value", type)
        workspace.description = description
        self.session.add(workspace)
        commit_or_raise(self.session, "updating the workspace", conflict_message=DUPLICATE_WORKSPACE)
        self.session.refresh(workspace)
        return workspace

    # ============================================================
    # ✅ Delete (cascade)
    # ============================================================
    def delete(self, workspace_id: int, acting_user_id: int) -> None:
        workspace = self.gate.authorize(workspace_id, acting_user_id)

        task_ids = self.session.exec(select(Task.id).where(Task.workspace_id == workspace.id)).all()
        attachment_keys = purge_tasks(self.session, list(task_ids))

        self.session.exec(delete(Project).where(Project.workspace_id == workspace.id))
        self.session.exec(delete(Invitation).where(Invitation.workspace_id == workspace.id))
        self.session.exec(delete(WorkspaceCollaborator).where(WorkspaceCollaborator.workspace_id == workspace.id))
        self.session.delete(workspace)
        commit_or_raise(self.session, "deleting the workspace")

        # stored objects go only after the rows are gone
        self.storage.delete_many(attachment_keys)
        logger.info("Workspace %s deleted with %s task(s)", workspace_id, len(task_ids))

    # ============================================================
    # ✅ Collaborators
    # ============================================================
    def remove_collaborator(self, workspace_id: int, acting_user_id: int, user_id: int) -> None:
        workspace = self.gate.authorize(workspace_id, acting_user_id)

        if user_id == workspace.owner_id:
            raise BadRequestError("The workspace admin cannot be removed from the workspace")

        link = self.session.get(WorkspaceCollaborator, (workspace_id, user_id))
        if not link:
            raise NotFoundError("Collaborator not found in this workspace")

        self.session.delete(link)
        commit_or_raise(self.session, "removing the collaborator")
        logger.info("User %s removed from workspace %s", user_id, workspace_id)

    def collaborators(self, workspace_id: int) -> List[User]:
        return self.gate.members(workspace_id)

    # ============================================================
    # ✅ Freeze (platform admin)
    # ============================================================
    def set_frozen(self, workspace_id: int, action: str) -> Workspace:
        workspace = self.session.get(Workspace, workspace_id)
        if not workspace:
            raise NotFoundError("Workspace not found")

        workspace.freezed = action == "freez"
        self.session.add(workspace)
        commit_or_raise(self.session, "updating the workspace freeze flag")
        self.session.refresh(workspace)
        logger.info("Workspace %s %sed", workspace_id, action)
        return workspace

    # ============================================================
    # ✅ Reads
    # ============================================================
    def list_for_user(self, user: User):
        """Workspaces the user collaborates in plus invitations addressed to them."""
        workspaces = self.session.exec(
            select(Workspace)
            .join(WorkspaceCollaborator, WorkspaceCollaborator.workspace_id == Workspace.id)
            .where(WorkspaceCollaborator.user_id == user.id)
            .order_by(Workspace.timestamp.desc(), Workspace.id.desc())
        ).all()
        pending = self.invitations.pending_for_email(user.email)
        return list(workspaces), pending

    def get_detail(self, workspace_id: int, acting_user_id: int):
        workspace = self.gate.authorize_member(workspace_id, acting_user_id, mutating=False)

        admin = self.session.get(User, workspace.owner_id)
        projects = self.session.exec(
            select(Project)
            .where(Project.workspace_id == workspace.id)
            .order_by(Project.timestamp.desc(), Project.id.desc())
        ).all()
        return {
            "workspace": workspace,
            "admin": admin,
            "collaborators": self.collaborators(workspace.id),
            "invitations": self.invitations.list_actionable(workspace.id),
            "projects": list(projects),
        }

    # ============================================================
    # ✅ Admin listing
    # ============================================================
    def admin_list(self, query: AdminWorkspaceQuery, page_size: int) -> AdminWorkspacePage:
        collaborators = (
            select(func.count())
            .select_from(WorkspaceCollaborator)
            .where(WorkspaceCollaborator.workspace_id == Workspace.id)
            .scalar_subquery()
        )
        projects = (
            select(func.count(Project.id)).where(Project.workspace_id == Workspace.id).scalar_subquery()
        )
        tasks = select(func.count(Task.id)).where(Task.workspace_id == Workspace.id).scalar_subquery()

        filters = []
        if query.search:
            filters.append(Workspace.title.ilike(f"%{query.search}%"))
        if query.start_date:
            filters.append(Workspace.timestamp >= query.start_date)
        if query.end_date:
            filters.append(Workspace.timestamp <= query.end_date)

        total = self.session.exec(select(func.count(Workspace.id)).where(*filters)).one()

        sort_columns = {
            "title": Workspace.title,
            "admin": User.username,
            "date": Workspace.timestamp,
            "numOfCollaborators": collaborators,
            "numOfProjects": projects,
            "numOfTasks": tasks,
        }
        column = sort_columns.get(query.sort_by, Workspace.timestamp)
        if query.sort_by is None:
            ordering = [Workspace.timestamp.desc(), Workspace.id.desc()]
        elif query.order == "desc":
            ordering = [column.desc(), Workspace.id.desc()]
        else:
            ordering = [column.asc(), Workspace.id.asc()]

        offset = (query.page - 1) * page_size
        rows = self.session.exec(
            select(Workspace, User.username, collaborators, projects, tasks)
            .join(User, User.id == Workspace.owner_id, isouter=True)
            .where(*filters)
            .order_by(*ordering)
            .offset(offset)
            .limit(page_size)
        ).all()

        result = [
            AdminWorkspaceRow(
                slno=offset + index + 1,
                id=workspace.id,
                title=workspace.title,
                type=workspace.type,
                admin=username,
                collaborators_count=collaborators_count,
                projects_count=projects_count,
                tasks_count=tasks_count,
                freezed=workspace.freezed,
                timestamp=workspace.timestamp,
            )
            for index, (workspace, username, collaborators_count, projects_count, tasks_count) in enumerate(rows)
        ]

        analytics = AdminWorkspaceAnalytics(
            total_workspaces=self.session.exec(select(func.count(Workspace.id))).one(),
            total_projects=self.session.exec(select(func.count(Project.id))).one(),
            total_tasks=self.session.exec(select(func.count(Task.id))).one(),
        )

        return AdminWorkspacePage(
            analytics=analytics,
            workspaces=result,
            total_pages=math.ceil(total / page_size) if total else 0,
            total_workspaces=total,
        )
