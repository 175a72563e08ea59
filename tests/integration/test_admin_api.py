from __future__ import annotations

from fastapi.testclient import TestClient

from ledgerbook.models import Customer, User


def test_admin_endpoints_require_admin_role(client: TestClient, owner_headers: dict[str, str]) -> None:
    for path in (
        "/api/admin/users",
        "/api/admin/transactions",
        "/api/admin/payments",
        "/api/admin/payment-methods",
        "/api/admin/deletion-requests",
    ):
        response = client.get(path, headers=owner_headers)
        assert response.status_code == 403
        assert response.json()["detail"] == "Access denied. Admin only."


def test_admin_lists_across_owners(
    client: TestClient,
    admin_headers: dict[str, str],
    owner_headers: dict[str, str],
    owner: User,
    customer: Customer,
) -> None:
    client.post(
        "/api/transactions",
        json={"customer_id": customer.id, "kind": "received", "amount": "12.50"},
        headers=owner_headers,
    )

    users = client.get("/api/admin/users", headers=admin_headers).json()
    transactions = client.get("/api/admin/transactions", headers=admin_headers).json()

    assert {user["phone"] for user in users} == {"9000000000", "9000000001"}
    assert [row["owner_id"] for row in transactions] == [owner.id]


def test_account_deletion_flow(
    client: TestClient,
    admin_headers: dict[str, str],
    owner_headers: dict[str, str],
    customer: Customer,
) -> None:
    requested = client.post(
        "/api/account/deletion-request", json={"reason": "closing shop"}, headers=owner_headers
    )
    assert requested.status_code == 201
    request_id = requested.json()["id"]
    duplicate = client.post("/api/account/deletion-request", json={}, headers=owner_headers)
    assert duplicate.status_code == 409

    own = client.get("/api/account/deletion-request", headers=owner_headers).json()
    assert [item["id"] for item in own] == [request_id]

    approved = client.post(f"/api/admin/deletion-requests/{request_id}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert approved.json()["user_phone"] == "9000000001"

    again = client.post(f"/api/admin/deletion-requests/{request_id}/reject", headers=admin_headers)
    assert again.status_code == 409
    # Tokens issued before the erasure stop working.
    assert client.get("/api/customers", headers=owner_headers).status_code == 401

    remaining = client.get("/api/admin/deletion-requests", headers=admin_headers).json()
    assert [item["status"] for item in remaining] == ["approved"]
