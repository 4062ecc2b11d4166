# scripts/seed.py

import os
import sys
import argparse
from datetime import timedelta

from dotenv import load_dotenv
from sqlmodel import Session, select

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# ✅ Load environment variables
load_dotenv()

from core.database import engine, create_db_and_tables  # noqa: E402
from core.security import create_token_for_user  # noqa: E402
from models.models import (  # noqa: E402
    User,
    UserRole,
    UserSubscription,
    Workspace,
    WorkspaceCollaborator,
    WorkspaceType,
    normalize_title,
    utcnow,
)


def _get_or_create_user(session: Session, username: str, email: str, role: UserRole) -> User:
    user = session.exec(select(User).where(User.email == email)).first()
    if user:
        return user
    user = User(username=username, email=email, role=role.value, verified=True)
    session.add(user)
    session.commit()
    session.refresh(user)
    print(f"✅ Added {role.value} user {email}")
    return user


def seed_dev_data():
    """Seed development database with a teamlead, members, an admin and one workspace."""
    print("🌱 Seeding development data...")
    create_db_and_tables()

    with Session(engine) as session:
        admin = _get_or_create_user(session, "admin", "admin@demo.com", UserRole.ADMIN)
        lead = _get_or_create_user(session, "lead", "lead@demo.com", UserRole.TEAMLEAD)
        members = [
            _get_or_create_user(session, email.split("@")[0], email, UserRole.REGULAR)
            for email in ["member1@demo.com", "member2@demo.com"]
        ]

        # -----------------------------
        # 🏢 Demo Workspace (owner + members)
        # -----------------------------
        workspace = session.exec(
            select(Workspace).where(
                Workspace.owner_id == lead.id,
                Workspace.title_key == normalize_title("Demo Workspace"),
            )
        ).first()

        if not workspace:
            workspace = Workspace(
                title="Demo Workspace",
                title_key=normalize_title("Demo Workspace"),
                owner_id=lead.id,
                type=WorkspaceType.ENGINEERING.value,
                description="Seeded workspace",
            )
            session.add(workspace)
            session.commit()
            session.refresh(workspace)

            for user in [lead, *members]:
                session.add(WorkspaceCollaborator(workspace_id=workspace.id, user_id=user.id))
            session.commit()
            print("✅ Created Demo Workspace")

        # -----------------------------
        # 💳 Premium subscription for the teamlead
        # -----------------------------
        has_plan = session.exec(select(UserSubscription).where(UserSubscription.user_id == lead.id)).first()
        if not has_plan:
            now = utcnow()
            session.add(
                UserSubscription(
                    user_id=lead.id,
                    plan_title="Pro",
                    start_date=now,
                    end_date=now + timedelta(days=30),
                    amount_paid=499.0,
                )
            )
            session.commit()
            print("✅ Added premium subscription for lead@demo.com")

        print(f"🔑 Teamlead token: {create_token_for_user(lead)}")
        print(f"🔑 Admin token: {create_token_for_user(admin)}")

    print("🌱 Development data seeding complete.")


def seed_staging_data():
    """Seed staging database with minimal safe data."""
    print("🌱 Seeding staging data...")
    create_db_and_tables()

    with Session(engine) as session:
        admin = _get_or_create_user(session, "staging-admin", "staging-admin@progpath.com", UserRole.ADMIN)
        print(f"🔑 Admin token: {create_token_for_user(admin)}")

    print("🌱 Staging data seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the ProgPath database.")
    parser.add_argument(
        "--env",
        choices=["dev", "staging"],
        default="dev",
        help="Select environment to seed (dev or staging)",
    )
    args = parser.parse_args()

    if args.env == "dev":
        seed_dev_data()
    elif args.env == "staging":
        seed_staging_data()
