from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal

from fastapi.testclient import TestClient

from ledgerbook.models import User


def _create_customer(client: TestClient, headers: dict[str, str], **overrides: str) -> dict:
    payload = {"name": "Asha", "mobile": "9990001111"} | overrides
    response = client.post("/api/customers", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


def test_requests_without_token_are_rejected(client: TestClient) -> None:
    assert client.get("/api/customers").status_code in {401, 403}
    assert client.get("/api/transactions").status_code in {401, 403}


def test_customer_crud(client: TestClient, owner_headers: dict[str, str]) -> None:
    created = _create_customer(client, owner_headers)

    listed = client.get("/api/customers", headers=owner_headers).json()
    assert [item["id"] for item in listed] == [created["id"]]

    updated = client.put(f"/api/customers/{created['id']}", json={"name": "Asha K"}, headers=owner_headers)
    assert updated.status_code == 200
    assert updated.json()["name"] == "Asha K"

    assert client.delete(f"/api/customers/{created['id']}", headers=owner_headers).status_code == 204
    assert client.get(f"/api/customers/{created['id']}", headers=owner_headers).status_code == 404


def test_transaction_lifecycle_keeps_running_balances(
    client: TestClient, owner_headers: dict[str, str]
) -> None:
    customer = _create_customer(client, owner_headers)
    first = client.post(
        "/api/transactions",
        json={
            "customer_id": customer["id"],
            "kind": "given",
            "amount": "100",
            "occurred_at": "2026-03-01T09:00:00Z",
        },
        headers=owner_headers,
    )
    second = client.post(
        "/api/transactions",
        json={
            "customer_id": customer["id"],
            "kind": "received",
            "amount": "30",
            "description": "part payment",
            "occurred_at": "2026-03-01T10:00:00Z",
        },
        headers=owner_headers,
    )
    assert first.status_code == 201
    assert second.status_code == 201
    assert Decimal(first.json()["balance"]) == Decimal("-100")
    assert Decimal(second.json()["balance"]) == Decimal("-70")

    moved = client.put(
        f"/api/transactions/{second.json()['id']}",
        json={"occurred_at": "2026-03-01T08:00:00Z"},
        headers=owner_headers,
    )
    assert moved.status_code == 200
    assert Decimal(moved.json()["balance"]) == Decimal("30")

    rows = client.get(f"/api/transactions/customer/{customer['id']}", headers=owner_headers).json()
    assert [Decimal(row["balance"]) for row in rows] == [Decimal("-70"), Decimal("30")]

    summary = client.get("/api/transactions/summary", headers=owner_headers).json()
    assert Decimal(summary["total_given"]) == Decimal("100")
    assert Decimal(summary["total_received"]) == Decimal("30")
    assert Decimal(summary["aggregate_balance"]) == Decimal("-70")

    deleted = client.delete(f"/api/transactions/{first.json()['id']}", headers=owner_headers)
    assert deleted.status_code == 204
    rows = client.get("/api/transactions", headers=owner_headers).json()
    assert [Decimal(row["balance"]) for row in rows] == [Decimal("30")]


def test_transaction_errors_map_to_http_statuses(
    client: TestClient, owner_headers: dict[str, str]
) -> None:
    customer = _create_customer(client, owner_headers)

    missing_customer = client.post(
        "/api/transactions",
        json={"customer_id": "missing", "kind": "given", "amount": "1"},
        headers=owner_headers,
    )
    zero_amount = client.post(
        "/api/transactions",
        json={"customer_id": customer["id"], "kind": "given", "amount": "0"},
        headers=owner_headers,
    )
    bad_kind = client.post(
        "/api/transactions",
        json={"customer_id": customer["id"], "kind": "borrowed", "amount": "1"},
        headers=owner_headers,
    )
    row = client.post(
        "/api/transactions",
        json={"customer_id": customer["id"], "kind": "given", "amount": "1"},
        headers=owner_headers,
    ).json()
    immutable_kind = client.put(
        f"/api/transactions/{row['id']}", json={"kind": "received"}, headers=owner_headers
    )

    assert missing_customer.status_code == 404
    assert zero_amount.status_code == 409
    assert bad_kind.status_code == 422
    assert immutable_kind.status_code == 422
    assert client.delete("/api/transactions/missing", headers=owner_headers).status_code == 404


def test_owners_cannot_see_each_other(
    client: TestClient,
    make_user: Callable[..., User],
    headers_for: Callable[[User], dict[str, str]],
    owner_headers: dict[str, str],
) -> None:
    customer = _create_customer(client, owner_headers)
    stranger_headers = headers_for(make_user())

    assert client.get(f"/api/customers/{customer['id']}", headers=stranger_headers).status_code == 404
    assert client.get("/api/transactions", headers=stranger_headers).json() == []
    assert (
        client.get(f"/api/transactions/customer/{customer['id']}", headers=stranger_headers).status_code == 404
    )


def test_health_endpoints(client: TestClient) -> None:
    assert client.get("/api/healthz").status_code == 200
    assert client.get("/api/readyz").status_code == 200
