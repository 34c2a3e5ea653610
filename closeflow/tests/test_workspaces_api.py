"""
Tests for workspace, category and audit log endpoints
"""
import pytest
from httpx import AsyncClient

from closeflow.models.workspace import MemberRole, MemberStatus, WorkspaceMember


@pytest.mark.api
@pytest.mark.asyncio
class TestWorkspacesAPI:

    async def test_health_check(self, test_client: AsyncClient):
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_create_workspace(self, test_client: AsyncClient, owner_headers):
        response = await test_client.post(
            "/api/v1/workspaces/",
            json={"name": "Acme", "fiscal_year_end": "12-31", "first_period": "2024-01"},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Acme"
        assert data["owner_id"] == "user_owner"
        assert data["timezone"] == "UTC"

        mine = await test_client.get("/api/v1/workspaces/", headers=owner_headers)
        assert [w["id"] for w in mine.json()] == [data["id"]]

    async def test_list_only_member_workspaces(self, test_client: AsyncClient, owner_headers, workspace_id, other_workspace_id):
        response = await test_client.get("/api/v1/workspaces/", headers=owner_headers)
        assert [w["id"] for w in response.json()] == [workspace_id]

    async def test_get_workspace(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        own = await test_client.get(f"/api/v1/workspaces/{workspace_id}", headers=owner_headers)
        assert own.status_code == 200

        other = await test_client.get(f"/api/v1/workspaces/{workspace_id}", headers=outsider_headers)
        assert other.status_code == 403

        missing = await test_client.get("/api/v1/workspaces/999", headers=owner_headers)
        assert missing.status_code == 404

    async def test_inactive_member_denied(self, test_client: AsyncClient, test_db, outsider_headers, workspace_id):
        test_db.add(WorkspaceMember(
            workspace_id=workspace_id,
            user_id="user_outsider",
            email="outsider@test.com",
            name="Former staff",
            role=MemberRole.MEMBER,
            status=MemberStatus.INACTIVE,
            invited_by="user_owner",
        ))
        await test_db.commit()

        response = await test_client.get(f"/api/v1/periods/workspace/{workspace_id}", headers=outsider_headers)
        assert response.status_code == 403


@pytest.mark.api
@pytest.mark.asyncio
class TestMembersAPI:
    """Invitations, roles and deactivation"""

    async def _invite(self, client, headers, workspace_id, email="outsider@test.com", role="MEMBER"):
        return await client.post(
            f"/api/v1/workspaces/{workspace_id}/members",
            json={"email": email, "name": "Outsider", "role": role},
            headers=headers,
        )

    async def _owner_member_id(self, client, headers, workspace_id) -> int:
        members = await client.get(f"/api/v1/workspaces/{workspace_id}/members", headers=headers)
        return next(m["id"] for m in members.json() if m["user_id"] == "user_owner")

    async def test_owner_listed_as_admin(self, test_client: AsyncClient, owner_headers, workspace_id):
        response = await test_client.get(f"/api/v1/workspaces/{workspace_id}/members", headers=owner_headers)

        assert response.status_code == 200
        members = response.json()
        assert len(members) == 1
        assert members[0]["user_id"] == "user_owner"
        assert members[0]["role"] == "ADMIN"
        assert members[0]["status"] == "ACTIVE"

    async def test_invite_creates_pending_member(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        response = await self._invite(test_client, owner_headers, workspace_id, email=" Outsider@Test.com ")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["email"] == "outsider@test.com"
        assert data["user_id"].startswith("pending_")
        assert data["invited_by"] == "user_owner"

        members = await test_client.get(f"/api/v1/workspaces/{workspace_id}/members", headers=owner_headers)
        assert sorted(m["status"] for m in members.json()) == ["ACTIVE", "PENDING"]

        # Pending members have no access yet
        denied = await test_client.get(f"/api/v1/periods/workspace/{workspace_id}", headers=outsider_headers)
        assert denied.status_code == 403

    async def test_invalid_email_rejected(self, test_client: AsyncClient, owner_headers, workspace_id):
        response = await self._invite(test_client, owner_headers, workspace_id, email="not-an-email")
        assert response.status_code == 422

    async def test_duplicate_invite_rejected(self, test_client: AsyncClient, owner_headers, workspace_id):
        await self._invite(test_client, owner_headers, workspace_id)
        again = await self._invite(test_client, owner_headers, workspace_id)
        assert again.status_code == 409

        existing_admin = await self._invite(test_client, owner_headers, workspace_id, email="owner@test.com")
        assert existing_admin.status_code == 409

    async def test_accept_invitation_grants_access(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        await self._invite(test_client, owner_headers, workspace_id)

        accepted = await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/accept", headers=outsider_headers)

        assert accepted.status_code == 200
        assert accepted.json()["user_id"] == "user_outsider"
        assert accepted.json()["status"] == "ACTIVE"

        periods = await test_client.get(f"/api/v1/periods/workspace/{workspace_id}", headers=outsider_headers)
        assert periods.status_code == 200
        mine = await test_client.get("/api/v1/workspaces/", headers=outsider_headers)
        assert workspace_id in [w["id"] for w in mine.json()]

    async def test_accept_without_invitation(self, test_client: AsyncClient, outsider_headers, workspace_id):
        response = await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/accept", headers=outsider_headers)
        assert response.status_code == 404

    async def test_member_cannot_invite(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        await self._invite(test_client, owner_headers, workspace_id)
        await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/accept", headers=outsider_headers)

        response = await self._invite(test_client, outsider_headers, workspace_id, email="third@test.com")
        assert response.status_code == 403
        assert response.json()["detail"] == "Access denied. Admin role required"

    async def test_non_member_cannot_list_members(self, test_client: AsyncClient, outsider_headers, workspace_id):
        response = await test_client.get(f"/api/v1/workspaces/{workspace_id}/members", headers=outsider_headers)
        assert response.status_code == 403

    async def test_promote_member_to_admin(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        await self._invite(test_client, owner_headers, workspace_id)
        accepted = await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/accept", headers=outsider_headers)
        member_id = accepted.json()["id"]

        response = await test_client.patch(
            f"/api/v1/workspaces/{workspace_id}/members/{member_id}", json={"role": "ADMIN"}, headers=owner_headers
        )
        assert response.status_code == 200
        assert response.json()["role"] == "ADMIN"

        invited = await self._invite(test_client, outsider_headers, workspace_id, email="third@test.com")
        assert invited.status_code == 200

    async def test_cannot_demote_last_admin(self, test_client: AsyncClient, owner_headers, workspace_id):
        owner_member_id = await self._owner_member_id(test_client, owner_headers, workspace_id)

        demoted = await test_client.patch(
            f"/api/v1/workspaces/{workspace_id}/members/{owner_member_id}", json={"role": "MEMBER"}, headers=owner_headers
        )
        assert demoted.status_code == 409

        deactivated = await test_client.post(
            f"/api/v1/workspaces/{workspace_id}/members/{owner_member_id}/deactivate", headers=owner_headers
        )
        assert deactivated.status_code == 409

    async def test_cannot_activate_pending_invitation(self, test_client: AsyncClient, owner_headers, workspace_id):
        invited = await self._invite(test_client, owner_headers, workspace_id)
        response = await test_client.patch(
            f"/api/v1/workspaces/{workspace_id}/members/{invited.json()['id']}",
            json={"status": "ACTIVE"},
            headers=owner_headers,
        )
        assert response.status_code == 400

    async def test_deactivate_member_revokes_access(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        await self._invite(test_client, owner_headers, workspace_id)
        accepted = await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/accept", headers=outsider_headers)
        member_id = accepted.json()["id"]

        response = await test_client.post(
            f"/api/v1/workspaces/{workspace_id}/members/{member_id}/deactivate", headers=owner_headers
        )

        assert response.status_code == 200
        assert response.json()["status"] == "INACTIVE"
        denied = await test_client.get(f"/api/v1/periods/workspace/{workspace_id}", headers=outsider_headers)
        assert denied.status_code == 403

        listed = await test_client.get(f"/api/v1/workspaces/{workspace_id}/members", headers=owner_headers)
        assert [m["user_id"] for m in listed.json()] == ["user_owner"]
        everyone = await test_client.get(
            f"/api/v1/workspaces/{workspace_id}/members", params={"include_inactive": True}, headers=owner_headers
        )
        assert len(everyone.json()) == 2

    async def test_former_member_can_be_invited_back(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        await self._invite(test_client, owner_headers, workspace_id)
        accepted = await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/accept", headers=outsider_headers)
        member_id = accepted.json()["id"]
        await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/{member_id}/deactivate", headers=owner_headers)

        reinvited = await self._invite(test_client, owner_headers, workspace_id, role="ADMIN")
        assert reinvited.status_code == 200
        rejoined = await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/accept", headers=outsider_headers)

        assert rejoined.json()["id"] == member_id
        assert rejoined.json()["role"] == "ADMIN"
        assert rejoined.json()["status"] == "ACTIVE"
        listed = await test_client.get(f"/api/v1/workspaces/{workspace_id}/members", headers=owner_headers)
        assert len(listed.json()) == 2

    async def test_update_member_of_other_workspace(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id, other_workspace_id):
        others = await test_client.get(f"/api/v1/workspaces/{other_workspace_id}/members", headers=outsider_headers)
        foreign_id = others.json()[0]["id"]

        response = await test_client.patch(
            f"/api/v1/workspaces/{workspace_id}/members/{foreign_id}", json={"role": "MEMBER"}, headers=owner_headers
        )
        assert response.status_code == 404

    async def test_member_changes_are_audited(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        await self._invite(test_client, owner_headers, workspace_id)
        await test_client.post(f"/api/v1/workspaces/{workspace_id}/members/accept", headers=outsider_headers)

        logs = await test_client.get(
            f"/api/v1/audit-logs/workspace/{workspace_id}", params={"entity": "member"}, headers=owner_headers
        )
        assert [log["action"] for log in logs.json()] == ["accept", "invite"]


@pytest.mark.api
@pytest.mark.asyncio
class TestCategoriesAPI:

    async def _create(self, client, headers, workspace_id, name="Cash"):
        return await client.post(
            "/api/v1/categories/",
            json={"workspace_id": workspace_id, "name": name},
            headers=headers,
        )

    async def test_create_and_list(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id)
        assert created.status_code == 200
        assert created.json()["show_by_default"] is True

        listed = await test_client.get(f"/api/v1/categories/workspace/{workspace_id}", headers=owner_headers)
        assert [c["name"] for c in listed.json()] == ["Cash"]

    async def test_duplicate_name_rejected(self, test_client: AsyncClient, owner_headers, workspace_id):
        await self._create(test_client, owner_headers, workspace_id)
        response = await self._create(test_client, owner_headers, workspace_id)
        assert response.status_code == 422

    async def test_update_category(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id)
        response = await test_client.patch(
            f"/api/v1/categories/{created.json()['id']}",
            json={"color": "#ff0000"},
            headers=owner_headers,
        )
        assert response.status_code == 200
        assert response.json()["color"] == "#ff0000"
        assert response.json()["name"] == "Cash"

    async def test_rename_to_existing_name_rejected(self, test_client: AsyncClient, owner_headers, workspace_id):
        await self._create(test_client, owner_headers, workspace_id, name="Cash")
        bank = await self._create(test_client, owner_headers, workspace_id, name="Bank")

        response = await test_client.patch(
            f"/api/v1/categories/{bank.json()['id']}",
            json={"name": " Cash "},
            headers=owner_headers,
        )
        assert response.status_code == 422

        listed = await test_client.get(f"/api/v1/categories/workspace/{workspace_id}", headers=owner_headers)
        assert [c["name"] for c in listed.json()] == ["Bank", "Cash"]

    async def test_rename_to_own_name_allowed(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id)
        response = await test_client.patch(
            f"/api/v1/categories/{created.json()['id']}",
            json={"name": "Cash", "color": "#000000"},
            headers=owner_headers,
        )
        assert response.status_code == 200

    async def test_same_name_allowed_across_kinds(self, test_client: AsyncClient, owner_headers, workspace_id):
        await self._create(test_client, owner_headers, workspace_id, name="Assets")
        response = await test_client.post(
            "/api/v1/categories/",
            json={"workspace_id": workspace_id, "name": "Assets", "kind": "ACCOUNT_TYPE"},
            headers=owner_headers,
        )
        assert response.status_code == 200
        assert response.json()["kind"] == "ACCOUNT_TYPE"

        checklist = await test_client.get(
            f"/api/v1/categories/workspace/{workspace_id}", params={"kind": "CHECKLIST"}, headers=owner_headers
        )
        assert len(checklist.json()) == 1
        assert checklist.json()[0]["kind"] == "CHECKLIST"

    async def test_task_rejects_non_checklist_category(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await test_client.post(
            "/api/v1/categories/",
            json={"workspace_id": workspace_id, "name": "Bank accounts", "kind": "RECONCILIATION"},
            headers=owner_headers,
        )
        response = await test_client.post(
            "/api/v1/tasks/",
            json={
                "workspace_id": workspace_id,
                "title": "Bank Rec",
                "frequency": "MONTHLY",
                "is_template": True,
                "category_id": created.json()["id"],
            },
            headers=owner_headers,
        )
        assert response.status_code == 404

    async def test_archived_category_hidden(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id)
        category_id = created.json()["id"]

        archived = await test_client.post(f"/api/v1/categories/{category_id}/archive", headers=owner_headers)
        assert archived.json()["is_archived"] is True

        listed = await test_client.get(f"/api/v1/categories/workspace/{workspace_id}", headers=owner_headers)
        assert listed.json() == []

        every = await test_client.get(
            f"/api/v1/categories/workspace/{workspace_id}", params={"include_archived": True}, headers=owner_headers
        )
        assert len(every.json()) == 1

    async def test_cloned_task_keeps_category(self, test_client: AsyncClient, owner_headers, workspace_id):
        category = await self._create(test_client, owner_headers, workspace_id)
        category_id = category.json()["id"]
        await test_client.post(
            "/api/v1/tasks/",
            json={
                "workspace_id": workspace_id,
                "title": "Bank Rec",
                "frequency": "MONTHLY",
                "is_template": True,
                "category_id": category_id,
            },
            headers=owner_headers,
        )

        opened = await test_client.post(
            "/api/v1/periods/",
            json={"workspace_id": workspace_id, "year": 2024, "month": 6},
            headers=owner_headers,
        )
        assert opened.json()["cloned_tasks"][0]["category_id"] == category_id


@pytest.mark.api
@pytest.mark.asyncio
class TestAuditLogsAPI:

    async def test_period_actions_are_logged(self, test_client: AsyncClient, owner_headers, workspace_id):
        opened = await test_client.post(
            "/api/v1/periods/",
            json={"workspace_id": workspace_id, "year": 2024, "month": 6},
            headers=owner_headers,
        )
        period_id = opened.json()["period"]["id"]
        await test_client.post(f"/api/v1/periods/{period_id}/close", headers=owner_headers)

        response = await test_client.get(
            f"/api/v1/audit-logs/workspace/{workspace_id}", params={"entity": "period"}, headers=owner_headers
        )

        assert response.status_code == 200
        logs = response.json()
        assert [log["action"] for log in logs] == ["close", "open"]
        assert all(log["user_id"] == "user_owner" for log in logs)
        assert all(log["entity_id"] == str(period_id) for log in logs)

    async def test_audit_logs_scoped_to_members(self, test_client: AsyncClient, outsider_headers, workspace_id):
        response = await test_client.get(f"/api/v1/audit-logs/workspace/{workspace_id}", headers=outsider_headers)
        assert response.status_code == 403
