"""Tests for the HTTP boundary: routing, identity and error payloads."""

from datetime import datetime

from models.models import UserRole


# =============================================================================
# Health / identity
# =============================================================================


class TestHealthAndIdentity:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_run_serves_the_app_with_uvicorn(self, monkeypatch):
        import uvicorn

        import main

        calls = {}
        monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.update(app=app, **kwargs))
        main.run()

        assert calls["app"] == "main:app"
        assert (calls["host"], calls["port"]) == ("0.0.0.0", 8000)

    def test_missing_token_is_rejected(self, client):
        assert client.get("/workspaces/").status_code == 401

    def test_regular_user_cannot_create_workspace(self, client, make_user, auth_headers):
        user = make_user(role=UserRole.REGULAR)
        response = client.post(
            "/workspaces/", json={"title": "Mine", "type": "engineering"}, headers=auth_headers(user)
        )

        assert response.status_code == 401
        assert response.json()["error"] == "unauthorized"


# =============================================================================
# Workspaces
# =============================================================================


class TestWorkspaceEndpoints:
    def test_create_and_list(self, client, make_user, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        headers = auth_headers(lead)

        created = client.post(
            "/workspaces/",
            json={"title": "Team Alpha", "type": "engineering", "emails": ["a@example.com"]},
            headers=headers,
        )
        assert created.status_code == 201
        body = created.json()
        assert body["workspace"]["title"] == "Team Alpha"
        assert body["invitations"][0]["status"] == "pending"

        listed = client.get("/workspaces/", headers=headers).json()
        assert [w["title"] for w in listed["workspaces"]] == ["Team Alpha"]

    def test_duplicate_title_is_conflict(self, client, make_user, make_workspace, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        make_workspace(lead, title="team alpha")

        response = client.post(
            "/workspaces/", json={"title": "Team Alpha", "type": "engineering"}, headers=auth_headers(lead)
        )

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "error": "conflict",
            "message": "Workspace with same title already exists, please enter a different title",
        }

    def test_missing_title_is_validation_error(self, client, make_user, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        response = client.post("/workspaces/", json={"type": "sales"}, headers=auth_headers(lead))

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_quota_payload(self, client, make_user, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        response = client.post(
            "/workspaces/",
            json={
                "title": "Big",
                "type": "engineering",
                "emails": ["a@example.com", "b@example.com", "c@example.com"],
            },
            headers=auth_headers(lead),
        )

        assert response.status_code == 402
        body = response.json()
        assert body["error"] == "quota_exceeded"
        assert body["quota"] == "collaborator"
        assert body["isPremiumUser"] is False

    def test_frozen_workspace_blocks_edit_and_project_create(
        self, client, make_user, make_workspace, auth_headers
    ):
        lead = make_user(role=UserRole.TEAMLEAD)
        workspace = make_workspace(lead, freezed=True)
        headers = auth_headers(lead)

        edit = client.put(
            f"/workspaces/{workspace.id}", json={"title": "New", "type": "sales"}, headers=headers
        )
        project = client.post(
            f"/workspaces/{workspace.id}/projects", json={"title": "P", "theme": "red"}, headers=headers
        )

        for response in (edit, project):
            assert response.status_code == 401
            assert response.json()["notify"] is True

        # reads stay available
        assert client.get(f"/workspaces/{workspace.id}", headers=headers).status_code == 200

    def test_owner_cannot_be_removed(self, client, make_user, make_workspace, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        workspace = make_workspace(lead)

        response = client.delete(f"/workspaces/{workspace.id}/collaborators/{lead.id}", headers=auth_headers(lead))
        assert response.status_code == 400


# =============================================================================
# Invitations over HTTP
# =============================================================================


class TestInvitationEndpoints:
    def test_send_accept_and_double_accept(self, client, make_user, make_workspace, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        invitee = make_user(role=UserRole.REGULAR, email="guest@example.com")
        workspace = make_workspace(lead)

        sent = client.post(
            f"/workspaces/{workspace.id}/invitations",
            json={"emails": ["guest@example.com"]},
            headers=auth_headers(lead),
        )
        assert sent.status_code == 201
        invitation_id = sent.json()[0]["id"]

        payload = {"workspace_id": workspace.id, "invitation_id": invitation_id, "action": "accepted"}
        first = client.patch("/invitations", json=payload, headers=auth_headers(invitee))
        second = client.patch("/invitations", json=payload, headers=auth_headers(invitee))

        assert first.status_code == 200
        assert first.json()["status"] == "accepted"
        assert second.status_code == 404

        detail = client.get(f"/workspaces/{workspace.id}", headers=auth_headers(invitee)).json()
        assert sorted(c["id"] for c in detail["collaborators"]) == sorted([lead.id, invitee.id])

    def test_cancel(self, client, make_user, make_workspace, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        workspace = make_workspace(lead)
        sent = client.post(
            f"/workspaces/{workspace.id}/invitations",
            json={"emails": ["guest@example.com"]},
            headers=auth_headers(lead),
        ).json()

        response = client.delete(
            f"/workspaces/{workspace.id}/invitations/{sent[0]['id']}", headers=auth_headers(lead)
        )
        assert response.status_code == 200

        remaining = client.get(f"/workspaces/{workspace.id}/invitations", headers=auth_headers(lead)).json()
        assert remaining == []


# =============================================================================
# Projects and tasks over HTTP
# =============================================================================


class TestProjectTaskEndpoints:
    def test_task_flow(self, client, make_user, make_workspace, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        member = make_user(role=UserRole.REGULAR)
        workspace = make_workspace(lead, members=[member])
        headers = auth_headers(lead)

        project = client.post(
            f"/workspaces/{workspace.id}/projects", json={"title": "Roadmap", "theme": "blue"}, headers=headers
        ).json()
        base = f"/workspaces/{workspace.id}/projects/{project['id']}/tasks"

        task = client.post(
            base,
            json={"title": "Write docs", "labels": [{"text": "docs"}], "assignee_ids": [member.id]},
            headers=headers,
        )
        assert task.status_code == 201
        task_id = task.json()["id"]
        assert task.json()["assignee_ids"] == [member.id]

        duplicate = client.post(base, json={"title": "write DOCS"}, headers=headers)
        assert duplicate.status_code == 409

        done = client.patch(f"{base}/{task_id}/status", json={"status": "Done"}, headers=auth_headers(member))
        assert done.status_code == 200
        assert done.json()["completion_date"] is not None

        comment = client.post(f"{base}/{task_id}/comments", json={"text": "nice"}, headers=auth_headers(member))
        assert comment.status_code == 201

        detail = client.get(f"{base}/{task_id}", headers=headers).json()
        assert detail["comments"][0]["text"] == "nice"
        assert detail["assignees"][0]["id"] == member.id

        listing = client.get(base, params={"status": "Done"}, headers=headers).json()
        assert [t["title"] for t in listing] == ["Write docs"]

        bad_filter = client.get(base, params={"dateFrom": "2024-01-01"}, headers=headers)
        assert bad_filter.status_code == 400

        burndown = client.get(f"/workspaces/{workspace.id}/projects/{project['id']}/burndown", headers=headers)
        assert burndown.status_code == 200
        assert len(burndown.json()["burnoutData"]) == 7

        deleted = client.delete(f"{base}/{task_id}", headers=headers)
        assert deleted.status_code == 200
        assert client.get(f"{base}/{task_id}", headers=headers).status_code == 404

    def test_star_project(self, client, make_user, make_workspace, make_project, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        workspace = make_workspace(lead)
        project = make_project(workspace)

        response = client.patch(
            f"/workspaces/{workspace.id}/projects/{project.id}/star", json={"action": 1}, headers=auth_headers(lead)
        )
        assert response.json()["starred"] is True


# =============================================================================
# Admin and home
# =============================================================================


class TestAdminAndHome:
    def test_admin_only(self, client, make_user, auth_headers):
        lead = make_user(role=UserRole.TEAMLEAD)
        assert client.get("/admin/dashboard", headers=auth_headers(lead)).status_code == 403

    def test_freeze_and_unfreeze(self, client, make_user, make_workspace, auth_headers):
        admin = make_user(role=UserRole.ADMIN)
        lead = make_user(role=UserRole.TEAMLEAD)
        workspace = make_workspace(lead)

        frozen = client.patch(
            f"/admin/workspaces/{workspace.id}/freeze", json={"action": "freez"}, headers=auth_headers(admin)
        )
        assert frozen.json()["freezed"] is True

        blocked = client.post(
            f"/workspaces/{workspace.id}/projects", json={"title": "P", "theme": "red"}, headers=auth_headers(lead)
        )
        assert blocked.status_code == 401

        thawed = client.patch(
            f"/admin/workspaces/{workspace.id}/freeze", json={"action": "unfreez"}, headers=auth_headers(admin)
        )
        assert thawed.json()["freezed"] is False

    def test_admin_workspace_page(self, client, make_user, make_workspace, make_project, auth_headers):
        admin = make_user(role=UserRole.ADMIN)
        lead = make_user(role=UserRole.TEAMLEAD, username="lead")
        member = make_user(role=UserRole.REGULAR)
        first = make_workspace(lead, title="Alpha", members=[member])
        make_workspace(lead, title="Beta")
        make_project(first)

        page = client.get(
            "/admin/workspaces",
            params={"sortBy": "numOfCollaborators", "order": "desc"},
            headers=auth_headers(admin),
        ).json()

        assert page["total_workspaces"] == 2
        assert page["total_pages"] == 1
        assert page["analytics"]["total_projects"] == 1
        top = page["workspaces"][0]
        assert (top["slno"], top["title"], top["admin"], top["collaborators_count"]) == (1, "Alpha", "lead", 2)

    def test_dashboard_range_validation(self, client, make_user, auth_headers):
        admin = make_user(role=UserRole.ADMIN)
        response = client.get(
            "/admin/dashboard", params={"dateFrom": datetime(2024, 1, 1).isoformat()}, headers=auth_headers(admin)
        )
        assert response.status_code == 400

    def test_home_and_membership(self, client, make_user, make_subscription, auth_headers):
        user = make_user(role=UserRole.REGULAR)
        make_subscription(user, plan_title="Pro")

        home = client.get("/home", headers=auth_headers(user))
        assert home.status_code == 200
        assert home.json()["taskStatusCounts"]["Done"] == 0

        membership = client.get("/subscriptions/current", headers=auth_headers(user)).json()
        assert membership["is_premium_user"] is True
        assert membership["subscription"]["plan_title"] == "Pro"
