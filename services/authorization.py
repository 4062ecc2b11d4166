# services/authorization.py
import logging
from typing import List

from sqlmodel import Session, select

from core.errors import ForbiddenError, UnauthorizedError
from models.models import User, Workspace, WorkspaceCollaborator

logger = logging.getLogger(__name__)


class RoleAuthorizationGate:
    """Decides whether an acting user may touch a given workspace."""

    def __init__(self, session: Session):
        self.session = session

    def _load(self, workspace_id: int, lock: bool) -> Workspace:
        query = select(Workspace).where(Workspace.id == workspace_id)
        if lock:
            query = query.with_for_update()
        workspace = self.session.exec(query).first()
        if not workspace:
            raise ForbiddenError("Forbidden! workspace does not exist to authorize teamlead")
        return workspace

    def authorize(self, workspace_id: int, user_id: int, lock: bool = False) -> Workspace:
        """
        Owner-only gate for workspace-scoped mutations.

        Raises ForbiddenError when the workspace is missing, UnauthorizedError
        when the user is not its owner, and UnauthorizedError(notify=True) when
        the workspace is frozen. `lock` takes a row lock for the rest of the
        caller's transaction.
        """
        workspace = self._load(workspace_id, lock)

        if workspace.owner_id != user_id:
            raise UnauthorizedError("Unauthorized! not the admin of current workspace!")

        if workspace.freezed:
            logger.info("Blocked mutation on frozen workspace %s by %s", workspace_id, user_id)
            raise UnauthorizedError(
                "Unauthorized ! can't perform operations in current workspace, "
                "workspace is temporarily freezed!",
                notify=True,
            )

        return workspace

    def authorize_member(self, workspace_id: int, user_id: int, mutating: bool = True) -> Workspace:
        """Collaborator-level gate (status/priority updates, comments, reads)."""
        workspace = self._load(workspace_id, lock=False)

        if not self.is_collaborator(workspace_id, user_id):
            raise UnauthorizedError("Unauthorized! not a collaborator of current workspace!")

        if mutating and workspace.freezed:
            raise UnauthorizedError(
                "Unauthorized ! can't perform operations in current workspace, "
                "workspace is temporarily freezed!",
                notify=True,
            )

        return workspace

    def is_collaborator(self, workspace_id: int, user_id: int) -> bool:
        link = self.session.get(WorkspaceCollaborator, (workspace_id, user_id))
        return link is not None

    def members(self, workspace_id: int) -> List[User]:
        """Collaborator set in join order; the owner is always part of it."""
        return list(
            self.session.exec(
                select(User)
                .join(WorkspaceCollaborator, WorkspaceCollaborator.user_id == User.id)
                .where(WorkspaceCollaborator.workspace_id == workspace_id)
                .order_by(WorkspaceCollaborator.joined_at, User.id)
            ).all()
        )
