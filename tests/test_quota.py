"""Tests for tiered workspace and collaborator limits."""

from datetime import timedelta

import pytest
from sqlmodel import select, func

from core.config import QuotaConfig
from core.errors import QuotaExceededError
from models.models import Invitation, Workspace, utcnow
from services.membership import MembershipOracle
from services.quota_service import WorkspaceQuotaManager
from services.storage_service import ObjectStorage
from services.workspace_service import WorkspaceService


# =============================================================================
# Membership oracle
# =============================================================================


class TestMembershipOracle:
    def test_no_subscription_is_not_premium(self, session, make_user):
        user = make_user()
        assert MembershipOracle(session).has_active_premium(user.id) is False

    def test_expired_subscription_is_not_premium(self, session, make_user, make_subscription):
        user = make_user()
        make_subscription(user, end_date=utcnow() - timedelta(days=1))
        assert MembershipOracle(session).has_active_premium(user.id) is False

    def test_current_membership_picks_latest_ending(self, session, make_user, make_subscription):
        user = make_user()
        make_subscription(user, days_left=5, plan_title="Basic")
        make_subscription(user, days_left=60, plan_title="Pro")

        membership = MembershipOracle(session).current_membership(user.id)
        assert membership.plan_title == "Pro"


# =============================================================================
# Workspace count
# =============================================================================


class TestWorkspaceQuota:
    def test_free_user_below_limit_can_create(self, quota, make_user, make_workspace):
        user = make_user()
        make_workspace(user, title="One")
        assert quota.can_create_workspace(user.id) is True

    def test_free_user_at_limit_is_refused(self, quota, make_user, make_workspace):
        user = make_user()
        make_workspace(user, title="One")
        make_workspace(user, title="Two")

        assert quota.can_create_workspace(user.id) is False
        with pytest.raises(QuotaExceededError) as exc:
            quota.ensure_can_create_workspace(user.id)

        payload = exc.value.to_payload()
        assert payload["quota"] == "workspace"
        assert payload["isPremiumUser"] is False
        assert payload["notify"] is True
        assert exc.value.status_code == 402

    def test_premium_user_ignores_count(self, quota, make_user, make_workspace, make_subscription):
        user = make_user()
        for title in ("One", "Two", "Three"):
            make_workspace(user, title=title)
        make_subscription(user)

        assert quota.can_create_workspace(user.id) is True

    def test_limit_comes_from_config(self, session, make_user, make_workspace):
        user = make_user()
        make_workspace(user, title="One")

        strict = WorkspaceQuotaManager(session, QuotaConfig(free_workspace_limit=1))
        assert strict.can_create_workspace(user.id) is False


# =============================================================================
# Collaborator / invitation count
# =============================================================================


class TestCollaboratorQuota:
    def test_two_collaborators_at_creation_allowed(self, quota, make_user):
        user = make_user()
        assert quota.can_add_collaborators(user.id, 2) is True

    def test_three_collaborators_at_creation_refused(self, quota, make_user):
        user = make_user()
        assert quota.can_add_collaborators(user.id, 3) is False

        with pytest.raises(QuotaExceededError) as exc:
            quota.ensure_can_add_collaborators(user.id, 3)
        assert exc.value.quota == "collaborator"

    def test_send_counts_every_historical_invitation(self, session, quota, make_user, make_workspace):
        user = make_user()
        workspace = make_workspace(user)
        session.add(Invitation(workspace_id=workspace.id, email="a@example.com", status="accepted"))
        session.add(Invitation(workspace_id=workspace.id, email="b@example.com", status="rejected"))
        session.commit()

        assert quota.invitation_count(workspace.id) == 2
        assert quota.can_send_invitations(user.id, workspace.id) is False

    def test_premium_can_keep_sending(self, session, quota, make_user, make_workspace, make_subscription):
        user = make_user()
        workspace = make_workspace(user)
        for email in ("a@example.com", "b@example.com", "c@example.com"):
            session.add(Invitation(workspace_id=workspace.id, email=email))
        session.commit()
        make_subscription(user)

        assert quota.can_send_invitations(user.id, workspace.id) is True


# =============================================================================
# Quota enforced inside workspace creation
# =============================================================================


class TestQuotaOnCreate:
    @pytest.fixture
    def workspaces(self, session, quota, tmp_path):
        return WorkspaceService(session, quota, ObjectStorage(tmp_path))

    def test_two_invites_at_creation_succeed(self, session, workspaces, make_user):
        user = make_user()
        workspace, invitations = workspaces.create(
            user.id, "Launch", "engineering", emails=["a@example.com", "b@example.com"]
        )

        assert workspace.id is not None
        assert [i.email for i in invitations] == ["a@example.com", "b@example.com"]
        assert all(i.status == "pending" for i in invitations)

    def test_third_invite_fails_before_anything_is_persisted(self, session, workspaces, make_user):
        user = make_user()

        with pytest.raises(QuotaExceededError) as exc:
            workspaces.create(
                user.id,
                "Launch",
                "engineering",
                emails=["a@example.com", "b@example.com", "c@example.com"],
            )

        assert exc.value.quota == "collaborator"
        session.rollback()
        assert session.exec(select(func.count(Workspace.id))).one() == 0
        assert session.exec(select(func.count(Invitation.id))).one() == 0

    def test_third_workspace_refused_for_free_user(self, workspaces, make_user):
        user = make_user()
        workspaces.create(user.id, "One", "engineering")
        workspaces.create(user.id, "Two", "sales")

        with pytest.raises(QuotaExceededError) as exc:
            workspaces.create(user.id, "Three", "business")
        assert exc.value.quota == "workspace"

    def test_duplicate_emails_in_one_request_count_once(self, workspaces, make_user):
        user = make_user()
        _, invitations = workspaces.create(
            user.id,
            "Launch",
            "engineering",
            emails=["A@example.com", "a@example.com ", "b@example.com"],
        )
        assert len(invitations) == 2
