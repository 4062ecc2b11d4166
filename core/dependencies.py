# core/dependencies.py
from fastapi import Depends
from sqlmodel import Session

from core.config import settings
from core.database import get_session
from services.analytics_service import AnalyticsAggregator
from services.authorization import RoleAuthorizationGate
from services.email_service import EmailService, email_service
from services.invitation_service import InvitationStateMachine
from services.membership import MembershipOracle
from services.project_service import ProjectService
from services.quota_service import WorkspaceQuotaManager
from services.storage_service import ObjectStorage, storage
from services.task_service import TaskLifecycleEngine
from services.workspace_service import WorkspaceService


# ============================================================
# ✅ Collaborators (overridable in tests)
# ============================================================
def get_storage() -> ObjectStorage:
    return storage


def get_notifier() -> EmailService:
    return email_service


# ============================================================
# ✅ Engine components, one set per request session
# ============================================================
def get_gate(session: Session = Depends(get_session)) -> RoleAuthorizationGate:
    return RoleAuthorizationGate(session)


def get_oracle(session: Session = Depends(get_session)) -> MembershipOracle:
    return MembershipOracle(session)


def get_quota(
    session: Session = Depends(get_session),
    oracle: MembershipOracle = Depends(get_oracle),
) -> WorkspaceQuotaManager:
    return WorkspaceQuotaManager(session, settings.quota_config, oracle)


def get_invitations(
    session: Session = Depends(get_session),
    quota: WorkspaceQuotaManager = Depends(get_quota),
    gate: RoleAuthorizationGate = Depends(get_gate),
) -> InvitationStateMachine:
    return InvitationStateMachine(session, quota, gate)


def get_workspaces(
    session: Session = Depends(get_session),
    quota: WorkspaceQuotaManager = Depends(get_quota),
    object_storage: ObjectStorage = Depends(get_storage),
    gate: RoleAuthorizationGate = Depends(get_gate),
) -> WorkspaceService:
    return WorkspaceService(session, quota, object_storage, gate)


def get_projects(
    session: Session = Depends(get_session),
    object_storage: ObjectStorage = Depends(get_storage),
    gate: RoleAuthorizationGate = Depends(get_gate),
) -> ProjectService:
    return ProjectService(session, object_storage, settings.analytics_config, gate)


def get_tasks(
    session: Session = Depends(get_session),
    object_storage: ObjectStorage = Depends(get_storage),
    gate: RoleAuthorizationGate = Depends(get_gate),
) -> TaskLifecycleEngine:
    return TaskLifecycleEngine(session, object_storage, gate)


def get_analytics(session: Session = Depends(get_session)) -> AnalyticsAggregator:
    return AnalyticsAggregator(session, settings.analytics_config)
