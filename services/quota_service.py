# services/quota_service.py
import logging
from typing import Optional

from sqlmodel import Session, select, func

from core.config import QuotaConfig
from core.errors import QuotaExceededError
from models.models import Workspace, Invitation
from services.membership import MembershipOracle

logger = logging.getLogger(__name__)


class WorkspaceQuotaManager:
    """
    Tiered limits on owned workspaces and collaborators.

    Every check is a pure predicate over the current store state; nothing is
    written here. Callers that need the check and the insert to be atomic run
    both inside one transaction holding a row lock (see WorkspaceService and
    InvitationStateMachine).
    """

    def __init__(
        self,
        session: Session,
        config: QuotaConfig,
        oracle: Optional[MembershipOracle] = None,
    ):
        self.session = session
        self.config = config
        self.oracle = oracle or MembershipOracle(session)

    # ------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------
    def owned_workspace_count(self, user_id: int) -> int:
        return self.session.exec(
            select(func.count(Workspace.id)).where(Workspace.owner_id == user_id)
        ).one()

    def invitation_count(self, workspace_id: int) -> int:
        """All invitations ever kept on the workspace, accepted ones included."""
        return self.session.exec(
            select(func.count(Invitation.id)).where(Invitation.workspace_id == workspace_id)
        ).one()

    # ------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------
    def can_create_workspace(self, user_id: int) -> bool:
        if self.owned_workspace_count(user_id) < self.config.free_workspace_limit:
            return True
        return self.oracle.has_active_premium(user_id)

    def can_add_collaborators(self, user_id: int, incoming_count: int) -> bool:
        """Collaborators requested together with a brand-new workspace."""
        if incoming_count <= self.config.free_collaborator_limit:
            return True
        return self.oracle.has_active_premium(user_id)

    def can_send_invitations(self, user_id: int, workspace_id: int) -> bool:
        """Post-creation sends are gated on the workspace's total invitation count."""
        if self.invitation_count(workspace_id) < self.config.free_collaborator_limit:
            return True
        return self.oracle.has_active_premium(user_id)

    # ------------------------------------------------------------
    # Enforcers (raise instead of returning False)
    # ------------------------------------------------------------
    def ensure_can_create_workspace(self, user_id: int) -> None:
        if not self.can_create_workspace(user_id):
            logger.info("Workspace quota reached for user %s", user_id)
            raise QuotaExceededError(
                "You have reached the limit for free workspaces. "
                "Please upgrade to a premium plan to create additional workspaces.",
                quota="workspace",
            )

    def ensure_can_add_collaborators(self, user_id: int, incoming_count: int) -> None:
        if not self.can_add_collaborators(user_id, incoming_count):
            limit = self.config.free_collaborator_limit
            logger.info("Collaborator quota reached for user %s (%s requested)", user_id, incoming_count)
            raise QuotaExceededError(
                f"You cannot add more than {limit} collaborators. "
                "Please upgrade to a premium plan to add more collaborators.",
                quota="collaborator",
            )

    def ensure_can_send_invitations(self, user_id: int, workspace_id: int) -> None:
        if not self.can_send_invitations(user_id, workspace_id):
            logger.info("Invitation quota reached on workspace %s", workspace_id)
            raise QuotaExceededError(
                "You have reached the limit for free collaborators. "
                "Please upgrade to a premium plan to add more collaborators.",
                quota="collaborator",
            )
