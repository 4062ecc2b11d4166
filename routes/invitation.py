# routes/invitation.py
import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends

from core.dependencies import get_invitations, get_notifier
from core.security import get_current_user
from models.models import User
from schemas.invitation_schema import InvitationActionRequest, InvitationRead, InvitationSend
from services.email_service import EmailService, NotificationKind
from services.invitation_service import InvitationStateMachine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Invitations"])


# -----------------------
# Send invitations (workspace owner)
# -----------------------
@router.post("/workspaces/{workspace_id}/invitations", response_model=List[InvitationRead], status_code=201)
def send_invitations(
    workspace_id: int,
    data: InvitationSend,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    invitations: InvitationStateMachine = Depends(get_invitations),
    notifier: EmailService = Depends(get_notifier),
):
    workspace, created = invitations.send(workspace_id, current_user.id, data.emails)

    background_tasks.add_task(
        notifier.send,
        NotificationKind.WORKSPACE_INVITATION,
        [invitation.email for invitation in created],
        {"workspace_title": workspace.title, "sender": current_user.username},
    )
    return [InvitationRead.model_validate(invitation) for invitation in created]


# -----------------------
# Pending + rejected invitations of a workspace (owner review list)
# -----------------------
@router.get("/workspaces/{workspace_id}/invitations", response_model=List[InvitationRead])
def list_invitations(
    workspace_id: int,
    current_user: User = Depends(get_current_user),
    invitations: InvitationStateMachine = Depends(get_invitations),
):
    invitations.gate.authorize_member(workspace_id, current_user.id, mutating=False)
    return [InvitationRead.model_validate(invitation) for invitation in invitations.list_actionable(workspace_id)]


# -----------------------
# Cancel invitation (workspace owner)
# -----------------------
@router.delete("/workspaces/{workspace_id}/invitations/{invitation_id}")
def cancel_invitation(
    workspace_id: int,
    invitation_id: int,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    invitations: InvitationStateMachine = Depends(get_invitations),
    notifier: EmailService = Depends(get_notifier),
):
    workspace, email = invitations.cancel(workspace_id, invitation_id, current_user.id)

    background_tasks.add_task(
        notifier.send,
        NotificationKind.INVITATION_CANCELLED,
        [email],
        {"workspace_title": workspace.title, "sender": current_user.username},
    )
    return {"success": True, "message": "Invitation cancelled successfully"}


# -----------------------
# Accept / reject (invitee)
# -----------------------
@router.patch("/invitations", response_model=InvitationRead)
def respond_to_invitation(
    data: InvitationActionRequest,
    current_user: User = Depends(get_current_user),
    invitations: InvitationStateMachine = Depends(get_invitations),
):
    invitation = invitations.act(data.workspace_id, data.invitation_id, data.action, current_user)
    return InvitationRead.model_validate(invitation)
