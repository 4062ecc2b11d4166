"""Pytest configuration and shared fixtures."""

import os
import sys
from datetime import timedelta
from pathlib import Path

# Settings are read at import time; provide them before any app module loads
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SENDGRID_API_KEY", "")
os.environ.setdefault("LOG_LEVEL", "WARNING")

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel  # noqa: E402

from core.config import AnalyticsConfig, QuotaConfig  # noqa: E402
from core.database import build_engine, get_session  # noqa: E402
from core.dependencies import get_notifier, get_storage  # noqa: E402
from core.security import create_token_for_user  # noqa: E402
from models.models import (  # noqa: E402
    Project,
    User,
    UserRole,
    UserSubscription,
    Workspace,
    WorkspaceCollaborator,
    normalize_title,
    utcnow,
)
from services.email_service import EmailService  # noqa: E402
from services.quota_service import WorkspaceQuotaManager  # noqa: E402
from services.storage_service import ObjectStorage  # noqa: E402


@pytest.fixture
def engine():
    test_engine = build_engine("sqlite://", poolclass=StaticPool)
    import models.models  # noqa: F401

    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)
    test_engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as db:
        yield db


@pytest.fixture
def storage(tmp_path):
    return ObjectStorage(tmp_path / "uploads")


@pytest.fixture
def quota(session):
    return WorkspaceQuotaManager(session, QuotaConfig())


@pytest.fixture
def analytics_config():
    return AnalyticsConfig()


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role=UserRole.TEAMLEAD, email=None, username=None, timestamp=None):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            username=username or f"user{n}",
            email=email or f"user{n}@example.com",
            role=getattr(role, "value", role),
            verified=True,
        )
        if timestamp is not None:
            user.timestamp = timestamp
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_workspace(session):
    def _make(owner, title="Team Alpha", type="engineering", freezed=False, members=()):
        workspace = Workspace(
            title=title,
            title_key=normalize_title(title),
            owner_id=owner.id,
            type=type,
            freezed=freezed,
        )
        session.add(workspace)
        session.commit()
        session.refresh(workspace)
        for user in (owner, *members):
            session.add(WorkspaceCollaborator(workspace_id=workspace.id, user_id=user.id))
        session.commit()
        return workspace

    return _make


@pytest.fixture
def make_project(session):
    def _make(workspace, title="Roadmap", theme="blue"):
        project = Project(
            workspace_id=workspace.id,
            title=title,
            title_key=normalize_title(title),
            theme=theme,
        )
        session.add(project)
        session.commit()
        session.refresh(project)
        return project

    return _make


@pytest.fixture
def make_subscription(session):
    def _make(user, days_left=30, plan_title="Pro", amount_paid=100.0, timestamp=None, end_date=None):
        now = utcnow()
        subscription = UserSubscription(
            user_id=user.id,
            plan_title=plan_title,
            start_date=now,
            end_date=end_date or now + timedelta(days=days_left),
            amount_paid=amount_paid,
        )
        if timestamp is not None:
            subscription.timestamp = timestamp
        session.add(subscription)
        session.commit()
        session.refresh(subscription)
        return subscription

    return _make


# ---------------------------------------------------------------------------
# HTTP boundary
# ---------------------------------------------------------------------------


@pytest.fixture
def client(engine, storage):
    from main import app

    def _session_override():
        with Session(engine) as db:
            yield db

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: EmailService(api_key="", sender_email="")

    # lifespan is not entered; tables come from the engine fixture
    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_token_for_user(user)}"}

    return _headers
