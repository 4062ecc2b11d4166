# routes/workspaces.py
import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from core.dependencies import get_notifier, get_workspaces
from core.security import IdentityContext, get_current_user, require_teamlead
from models.models import User
from schemas.invitation_schema import InvitationRead
from schemas.project_schema import ProjectRead
from schemas.user_schema import UserPublic
from schemas.workspace_schema import (
    PendingInvitationRead,
    UserWorkspacesRead,
    WorkspaceCreate,
    WorkspaceCreated,
    WorkspaceDetail,
    WorkspaceRead,
    WorkspaceSummary,
    WorkspaceUpdate,
)
from services.email_service import EmailService, NotificationKind
from services.workspace_service import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Workspaces"])


# ==================================================================
#  ✅ Create Workspace (teamlead only, quota gated)
# ==================================================================
@router.post("/", response_model=WorkspaceCreated, status_code=201)
def create_workspace(
    data: WorkspaceCreate,
    background_tasks: BackgroundTasks,
    identity: IdentityContext = Depends(require_teamlead),
    current_user: User = Depends(get_current_user),
    workspaces: WorkspaceService = Depends(get_workspaces),
    notifier: EmailService = Depends(get_notifier),
):
    workspace, invitations = workspaces.create(
        owner_id=identity.user_id,
        title=data.title,
        type=data.type,
        description=data.description,
        emails=data.emails,
    )

    if invitations:
        background_tasks.add_task(
            notifier.send,
            NotificationKind.WORKSPACE_INVITATION,
            [invitation.email for invitation in invitations],
            {"workspace_title": workspace.title, "sender": current_user.username},
        )

    return WorkspaceCreated(
        workspace=WorkspaceSummary.model_validate(workspace),
        invitations=[InvitationRead.model_validate(invitation) for invitation in invitations],
    )


# ==================================================================
#  ✅ List My Workspaces + Pending Invitations
# ==================================================================
@router.get("/", response_model=UserWorkspacesRead)
def list_my_workspaces(
    current_user: User = Depends(get_current_user),
    workspaces: WorkspaceService = Depends(get_workspaces),
):
    owned_or_joined, pending = workspaces.list_for_user(current_user)
    return UserWorkspacesRead(
        workspaces=[WorkspaceSummary.model_validate(workspace) for workspace in owned_or_joined],
        invitations=[
            PendingInvitationRead(
                workspace_id=workspace.id,
                title=workspace.title,
                workspace_admin=admin_name,
                invitation_id=invitation.id,
                status=invitation.status,
                timestamp=invitation.timestamp,
            )
            for invitation, workspace, admin_name in pending
        ],
    )


# ==================================================================
#  ✅ Workspace Detail
# ==================================================================
@router.get("/{workspace_id}", response_model=WorkspaceDetail)
def get_workspace(
    workspace_id: int,
    current_user: User = Depends(get_current_user),
    workspaces: WorkspaceService = Depends(get_workspaces),
):
    detail = workspaces.get_detail(workspace_id, current_user.id)
    return WorkspaceDetail(
        workspace=WorkspaceRead.model_validate(detail["workspace"]),
        admin=UserPublic.model_validate(detail["admin"]) if detail["admin"] else None,
        collaborators=[UserPublic.model_validate(user) for user in detail["collaborators"]],
        invitations=[InvitationRead.model_validate(invitation) for invitation in detail["invitations"]],
        projects=[ProjectRead.model_validate(project) for project in detail["projects"]],
    )


# ==================================================================
#  ✅ Edit Workspace
# ==================================================================
@router.put("/{workspace_id}", response_model=WorkspaceRead)
def edit_workspace(
    workspace_id: int,
    data: WorkspaceUpdate,
    current_user: User = Depends(get_current_user),
    workspaces: WorkspaceService = Depends(get_workspaces),
):
    workspace = workspaces.edit(
        workspace_id,
        current_user.id,
        title=data.title,
        type=data.type,
        description=data.description,
    )
    return WorkspaceRead.model_validate(workspace)


# ==================================================================
#  ✅ Delete Workspace (cascade)
# ==================================================================
@router.delete("/{workspace_id}")
def delete_workspace(
    workspace_id: int,
    current_user: User = Depends(get_current_user),
    workspaces: WorkspaceService = Depends(get_workspaces),
):
    workspaces.delete(workspace_id, current_user.id)
    return {"success": True, "message": "Workspace deleted successfully"}


# ==================================================================
#  ✅ Remove Collaborator
# ==================================================================
@router.delete("/{workspace_id}/collaborators/{user_id}")
def remove_collaborator(
    workspace_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    workspaces: WorkspaceService = Depends(get_workspaces),
):
    workspaces.remove_collaborator(workspace_id, current_user.id, user_id)
    return {"success": True, "message": "Collaborator removed successfully"}
