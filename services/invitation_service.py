# services/invitation_service.py
import logging
from typing import Iterable, List, Optional, Tuple

from sqlmodel import Session, select

from core.database import commit_or_raise
from core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError, UnauthorizedError
from models.models import (
    Invitation,
    InvitationStatus,
    User,
    Workspace,
    WorkspaceCollaborator,
    utcnow,
)
from services.authorization import RoleAuthorizationGate
from services.quota_service import WorkspaceQuotaManager

logger = logging.getLogger(__name__)

ACTIONABLE_STATUSES = (InvitationStatus.PENDING.value, InvitationStatus.REJECTED.value)
RESOLUTIONS = (InvitationStatus.ACCEPTED.value, InvitationStatus.REJECTED.value)


def normalize_emails(emails: Iterable[str]) -> List[str]:
    """Trim, lowercase and de-duplicate while keeping request order."""
    seen = []
    for email in emails:
        email = str(email).strip().lower()
        if email and email not in seen:
            seen.append(email)
    return seen


def add_collaborator(session: Session, workspace_id: int, user_id: int) -> bool:
    """Insert-if-absent into the collaborator set. Returns True when inserted."""
    if session.get(WorkspaceCollaborator, (workspace_id, user_id)):
        return False
    session.add(WorkspaceCollaborator(workspace_id=workspace_id, user_id=user_id))
    return True


class InvitationStateMachine:
    """
    Lifecycle of collaborator invitations.

        pending -> accepted   (invitee; adds them to the collaborator set)
        pending -> rejected   (invitee)
        pending | rejected -> removed   (workspace owner cancels)

    Accepted and rejected are terminal for the invitee: acting again on the
    same invitation is reported as NotFound.
    """

    def __init__(
        self,
        session: Session,
        quota: WorkspaceQuotaManager,
        gate: Optional[RoleAuthorizationGate] = None,
    ):
        self.session = session
        self.quota = quota
        self.gate = gate or RoleAuthorizationGate(session)

    # ------------------------------------------------------------
    # Staging (no commit; shared with workspace creation)
    # ------------------------------------------------------------
    def stage(self, workspace_id: int, emails: List[str]) -> List[Invitation]:
        """Add pending invitations to the unit of work, refusing duplicates."""
        if workspace_id is not None:
            already_pending = self.session.exec(
                select(Invitation.email).where(
                    Invitation.workspace_id == workspace_id,
                    Invitation.status == InvitationStatus.PENDING.value,
                    Invitation.email.in_(emails),
                )
            ).all()
            if already_pending:
                raise ConflictError(
                    f"An invitation is already pending for: {', '.join(sorted(already_pending))}",
                    {"emails": sorted(already_pending)},
                )

        invitations = [
            Invitation(workspace_id=workspace_id, email=email, status=InvitationStatus.PENDING.value)
            for email in emails
        ]
        for invitation in invitations:
            self.session.add(invitation)
        return invitations

    # ------------------------------------------------------------
    # Send
    # ------------------------------------------------------------
    def send(self, workspace_id: int, acting_user_id: int, emails: Iterable[str]) -> Tuple[Workspace, List[Invitation]]:
        emails = normalize_emails(emails or [])
        if not emails:
            raise BadRequestError("Please provide emails to send invitation!")

        # Row lock serialises concurrent sends on the same workspace
        workspace = self.gate.authorize(workspace_id, acting_user_id, lock=True)
        self.quota.ensure_can_send_invitations(acting_user_id, workspace.id)

        invitations = self.stage(workspace.id, emails)
        commit_or_raise(self.session, "sending invitations")

        for invitation in invitations:
            self.session.refresh(invitation)
        logger.info("Sent %s invitation(s) on workspace %s", len(invitations), workspace.id)
        return workspace, invitations

    # ------------------------------------------------------------
    # Accept / Reject
    # ------------------------------------------------------------
    def act(self, workspace_id: int, invitation_id: int, action: str, acting_user: User) -> Invitation:
        if action not in RESOLUTIONS:
            raise BadRequestError("Action must be 'accepted' or 'rejected'")

        invitation = self.session.exec(
            select(Invitation)
            .where(
                Invitation.id == invitation_id,
                Invitation.workspace_id == workspace_id,
                Invitation.status == InvitationStatus.PENDING.value,
            )
            .with_for_update()
        ).first()
        if not invitation:
            raise NotFoundError("Invitation not found or already updated")

        if invitation.email != acting_user.email.strip().lower():
            raise ForbiddenError("This invitation is addressed to another user")

        workspace = self.session.get(Workspace, workspace_id)
        if workspace.freezed:
            raise UnauthorizedError(
                "Unauthorized ! can't perform operations in current workspace, "
                "workspace is temporarily freezed!",
                notify=True,
            )

        invitation.status = action
        invitation.acted_at = utcnow()
        self.session.add(invitation)

        if action == InvitationStatus.ACCEPTED.value:
            add_collaborator(self.session, workspace_id, acting_user.id)

        commit_or_raise(self.session, "updating the invitation")
        self.session.refresh(invitation)
        logger.info("Invitation %s %s by user %s", invitation_id, action, acting_user.id)
        return invitation

    # ------------------------------------------------------------
    # Cancel (owner)
    # ------------------------------------------------------------
    def cancel(self, workspace_id: int, invitation_id: int, acting_user_id: int) -> Tuple[Workspace, str]:
        workspace = self.gate.authorize(workspace_id, acting_user_id)

        invitation = self.session.exec(
            select(Invitation).where(
                Invitation.id == invitation_id,
                Invitation.workspace_id == workspace_id,
                Invitation.status.in_(ACTIONABLE_STATUSES),
            )
        ).first()
        if not invitation:
            raise NotFoundError("Invitation not found")

        email = invitation.email
        self.session.delete(invitation)
        commit_or_raise(self.session, "cancelling the invitation")
        logger.info("Invitation %s cancelled on workspace %s", invitation_id, workspace_id)
        return workspace, email

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------
    def list_actionable(self, workspace_id: int) -> List[Invitation]:
        """Pending and rejected invitations; accepted ones are resolved."""
        return list(
            self.session.exec(
                select(Invitation)
                .where(
                    Invitation.workspace_id == workspace_id,
                    Invitation.status.in_(ACTIONABLE_STATUSES),
                )
                .order_by(Invitation.timestamp.desc(), Invitation.id.desc())
            ).all()
        )

    def pending_for_email(self, email: str) -> List[Tuple[Invitation, Workspace, Optional[str]]]:
        """Pending invitations addressed to `email`, with the inviting admin's username."""
        rows = self.session.exec(
            select(Invitation, Workspace, User.username)
            .join(Workspace, Workspace.id == Invitation.workspace_id)
            .join(User, User.id == Workspace.owner_id, isouter=True)
            .where(
                Invitation.email == email.strip().lower(),
                Invitation.status == InvitationStatus.PENDING.value,
            )
            .order_by(Invitation.timestamp.desc(), Invitation.id.desc())
        ).all()
        return [(invitation, workspace, username) for invitation, workspace, username in rows]
