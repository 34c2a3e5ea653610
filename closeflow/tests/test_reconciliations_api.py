"""
Tests for reconciliation line item endpoints
"""
import pytest
from httpx import AsyncClient

from closeflow.models.reconciliation import ReconciliationLineItem
from closeflow.services.reconciliation_service import account_number_key


@pytest.mark.unit
class TestAccountNumberOrder:

    def test_numeric_account_numbers_sort_numerically(self):
        items = [
            ReconciliationLineItem(id=1, account_number="1200"),
            ReconciliationLineItem(id=2, account_number="900"),
            ReconciliationLineItem(id=3, account_number="SUSPENSE"),
            ReconciliationLineItem(id=4, account_number="1010"),
        ]
        ordered = sorted(items, key=account_number_key)
        assert [i.account_number for i in ordered] == ["900", "1010", "1200", "SUSPENSE"]

    def test_ties_broken_by_id(self):
        items = [
            ReconciliationLineItem(id=7, account_number="1000"),
            ReconciliationLineItem(id=3, account_number="1000"),
        ]
        assert [i.id for i in sorted(items, key=account_number_key)] == [3, 7]


@pytest.mark.api
@pytest.mark.asyncio
class TestReconciliationsAPI:
    """Test line item endpoints"""

    async def _create(self, client: AsyncClient, headers, workspace_id, **overrides):
        payload = {
            "workspace_id": workspace_id,
            "name": "Operating account",
            "account_number": "1010",
            "account_type": "Assets",
            "category": "Cash",
            "variance_threshold": 5,
            "gl_balance": 1000.50,
            "rec_balance": 1000.00,
            **overrides,
        }
        return await client.post("/api/v1/reconciliations/", json=payload, headers=headers)

    async def test_create_line_item(self, test_client: AsyncClient, owner_headers, workspace_id):
        response = await self._create(
            test_client, owner_headers, workspace_id, name="  Operating account  ", assignees=["U1"]
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Operating account"
        assert data["status"] == "ACTIVE"
        assert data["source"] == "MANUAL"
        assert data["variance"] == 0.5
        assert data["exceeds_threshold"] is False
        assert data["assignees"] == ["U1"]
        assert data["links"] == []
        assert data["is_archived"] is False

    async def test_variance_over_threshold_flagged(self, test_client: AsyncClient, owner_headers, workspace_id):
        response = await self._create(
            test_client, owner_headers, workspace_id, gl_balance=250.10, rec_balance=300.00, variance_threshold=10
        )
        data = response.json()
        assert data["variance"] == -49.9
        assert data["exceeds_threshold"] is True

    @pytest.mark.parametrize("field,value", [
        ("account_number", "   "),
        ("variance_threshold", -1),
        ("source", "PDF"),
    ])
    async def test_invalid_line_item_rejected(self, test_client: AsyncClient, owner_headers, workspace_id, field, value):
        response = await self._create(test_client, owner_headers, workspace_id, **{field: value})
        assert response.status_code == 422

    async def test_create_non_member_forbidden(self, test_client: AsyncClient, outsider_headers, workspace_id):
        response = await self._create(test_client, outsider_headers, workspace_id)
        assert response.status_code == 403

    async def test_grouped_by_account_type_and_category(self, test_client: AsyncClient, owner_headers, workspace_id):
        await self._create(test_client, owner_headers, workspace_id, account_number="1200", category="Receivables",
                           gl_balance=500, rec_balance=450)
        await self._create(test_client, owner_headers, workspace_id, account_number="1020", category="Cash",
                           gl_balance=200, rec_balance=200)
        await self._create(test_client, owner_headers, workspace_id, account_number="1010", category="Cash",
                           gl_balance=100.25, rec_balance=100)
        await self._create(test_client, owner_headers, workspace_id, account_number="2000", account_type="Liabilities",
                           category="Payables", gl_balance=-300, rec_balance=-300)

        response = await test_client.get(
            f"/api/v1/reconciliations/workspace/{workspace_id}/grouped", headers=owner_headers
        )

        assert response.status_code == 200
        groups = response.json()
        assert [g["name"] for g in groups] == ["Assets", "Liabilities"]

        assets = groups[0]
        assert assets["gl_balance"] == 800.25
        assert assets["rec_balance"] == 750
        assert assets["variance"] == 50.25
        assert [c["name"] for c in assets["categories"]] == ["Cash", "Receivables"]

        cash = assets["categories"][0]
        assert [i["account_number"] for i in cash["items"]] == ["1010", "1020"]
        assert cash["variance"] == 0.25

        assert groups[1]["categories"][0]["variance"] == 0

    async def test_archived_items_leave_lists(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id)
        item_id = created.json()["id"]

        archived = await test_client.post(f"/api/v1/reconciliations/{item_id}/archive", headers=owner_headers)
        assert archived.status_code == 200
        assert archived.json()["is_archived"] is True

        listed = await test_client.get(f"/api/v1/reconciliations/workspace/{workspace_id}", headers=owner_headers)
        assert listed.json() == []
        grouped = await test_client.get(f"/api/v1/reconciliations/workspace/{workspace_id}/grouped", headers=owner_headers)
        assert grouped.json() == []

        patched = await test_client.patch(
            f"/api/v1/reconciliations/{item_id}", json={"gl_balance": 1}, headers=owner_headers
        )
        assert patched.status_code == 404

    async def test_list_filters(self, test_client: AsyncClient, owner_headers, workspace_id):
        await self._create(test_client, owner_headers, workspace_id, account_number="1010", category="Cash")
        await self._create(test_client, owner_headers, workspace_id, account_number="1200", category="Receivables")

        response = await test_client.get(
            f"/api/v1/reconciliations/workspace/{workspace_id}", params={"category": "Receivables"}, headers=owner_headers
        )
        assert [i["account_number"] for i in response.json()] == ["1200"]

    async def test_partial_update(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id, links=["https://bank.example/statement"])
        item_id = created.json()["id"]

        response = await test_client.patch(
            f"/api/v1/reconciliations/{item_id}",
            json={"rec_balance": 1000.50, "status": "INACTIVE", "name": None},
            headers=owner_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["variance"] == 0
        assert data["status"] == "INACTIVE"
        assert data["name"] == "Operating account"
        assert data["links"] == ["https://bank.example/statement"]

    async def test_update_blank_category_rejected(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id)
        response = await test_client.patch(
            f"/api/v1/reconciliations/{created.json()['id']}", json={"category": " "}, headers=owner_headers
        )
        assert response.status_code == 422

    async def test_get_unknown_line_item(self, test_client: AsyncClient, owner_headers):
        response = await test_client.get("/api/v1/reconciliations/999", headers=owner_headers)
        assert response.status_code == 404

    async def test_get_non_member_forbidden(self, test_client: AsyncClient, owner_headers, outsider_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id)
        response = await test_client.get(f"/api/v1/reconciliations/{created.json()['id']}", headers=outsider_headers)
        assert response.status_code == 403

    async def test_line_item_changes_are_audited(self, test_client: AsyncClient, owner_headers, workspace_id):
        created = await self._create(test_client, owner_headers, workspace_id)
        item_id = created.json()["id"]
        await test_client.patch(f"/api/v1/reconciliations/{item_id}", json={"gl_balance": 5}, headers=owner_headers)
        await test_client.post(f"/api/v1/reconciliations/{item_id}/archive", headers=owner_headers)

        logs = await test_client.get(
            f"/api/v1/audit-logs/workspace/{workspace_id}", params={"entity": "reconciliation"}, headers=owner_headers
        )
        assert [log["action"] for log in logs.json()] == ["archive", "update", "create"]
