from .analytics_schema import (
    BurndownPoint, BurndownRead, DateRange, DashboardRead,
    TaskBrief, HomeCounts, HomeTasks, HomeRead,
)
from .invitation_schema import InvitationSend, InvitationActionRequest, InvitationRead
from .project_schema import ProjectCreate, ProjectUpdate, ProjectRead, ProjectDetail, StarAction
from .task_schema import (
    Label, TaskCreate, TaskUpdate, TaskRead, TaskListItem, TaskDetail, TaskQuery,
    StatusUpdate, PriorityUpdate,
    CommentCreate, CommentRead, AttachmentRead,
)
from .user_schema import UserPublic, SubscriptionRead, MembershipRead
from .workspace_schema import (
    WorkspaceCreate, WorkspaceUpdate, WorkspaceSummary, WorkspaceRead, WorkspaceDetail,
    WorkspaceCreated, PendingInvitationRead, UserWorkspacesRead, FreezeAction,
    AdminWorkspaceQuery, AdminWorkspaceRow, AdminWorkspaceAnalytics, AdminWorkspacePage,
)

__all__ = [
    # Analytics
    "BurndownPoint", "BurndownRead", "DateRange", "DashboardRead",
    "TaskBrief", "HomeCounts", "HomeTasks", "HomeRead",

    # Invitation
    "InvitationSend", "InvitationActionRequest", "InvitationRead",

    # Project
    "ProjectCreate", "ProjectUpdate", "ProjectRead", "ProjectDetail", "StarAction",

    # Task
    "Label", "TaskCreate", "TaskUpdate", "TaskRead", "TaskListItem", "TaskDetail", "TaskQuery",
    "StatusUpdate", "PriorityUpdate",
    "CommentCreate", "CommentRead", "AttachmentRead",

    # User
    "UserPublic", "SubscriptionRead", "MembershipRead",

    # Workspace
    "WorkspaceCreate", "WorkspaceUpdate", "WorkspaceSummary", "WorkspaceRead", "WorkspaceDetail",
    "WorkspaceCreated", "PendingInvitationRead", "UserWorkspacesRead", "FreezeAction",
    "AdminWorkspaceQuery", "AdminWorkspaceRow", "AdminWorkspaceAnalytics", "AdminWorkspacePage",
]
