"""Integration tests for API endpoints"""

import json
import uuid
import httpx
import pytest
from datetime import date, timedelta
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from budget_ledger.api.dependencies import get_event_client
from budget_ledger.infrastructure.clients.events import LedgerEventClient
from budget_ledger.services.cost_centers import CostCenterDirectory


@pytest.fixture
def api_user(client: TestClient) -> dict:
    response = client.post("/v1/users", json={"name": "Ana Souza", "email": "ana@example.com"})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def api_cost_center(client: TestClient, api_user: dict) -> dict:
    response = client.post("/v1/cost-centers", json={"admin_user_id": api_user["id"], "name": "Household"})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def base_url(api_cost_center: dict) -> str:
    return f"/v1/cost-centers/{api_cost_center['id']}"


def _create_wallet(client: TestClient, base_url: str, user_id: str, name: str, opening: int) -> dict:
    response = client.post(
        f"{base_url}/wallets",
        json={"user_id": user_id, "name": name, "type": "checking", "opening_balance_cents": opening},
    )
    assert response.status_code == 201
    return response.json()


def _create_card(client: TestClient, base_url: str, limit: int = 500) -> dict:
    response = client.post(
        f"{base_url}/credit-cards",
        json={"name": "Visa", "limit_cents": limit, "due_day": 10, "closing_day": 3},
    )
    assert response.status_code == 201
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_create_cost_center_with_default_wallet(client: TestClient, api_user: dict, api_cost_center: dict, base_url: str):
    assert len(api_cost_center["code"]) == 9

    wallets = client.get(f"{base_url}/wallets").json()
    assert len(wallets) == 1
    assert wallets[0]["name"] == "Main Wallet"
    assert wallets[0]["is_default"] is True
    assert wallets[0]["balance_cents"] == 0

    memberships = client.get(f"/v1/users/{api_user['id']}/cost-centers").json()
    assert memberships[0]["role"] == "admin"
    assert memberships[0]["status"] == "approved"


def test_duplicate_email(client: TestClient, api_user: dict):
    response = client.post("/v1/users", json={"name": "Ana Again", "email": "ana@example.com"})
    assert response.status_code == 409
    assert response.json()["error"] == "duplicate"


def test_join_and_approve_membership(client: TestClient, api_cost_center: dict, base_url: str):
    partner = client.post("/v1/users", json={"name": "Bruno Lima", "email": "bruno@example.com"}).json()

    joined = client.post("/v1/cost-centers/join", json={"user_id": partner["id"], "code": api_cost_center["code"]})
    assert joined.status_code == 201
    assert joined.json()["status"] == "pending"

    pending = client.get(f"{base_url}/memberships/pending").json()
    assert [m["user"]["email"] for m in pending] == ["bruno@example.com"]

    approved = client.post(f"{base_url}/memberships/{joined.json()['id']}/approve")
    assert approved.status_code == 200
    assert approved.json()["status"] == "approved"
    assert client.get(f"{base_url}/memberships/pending").json() == []


def test_transfer_endpoint(client: TestClient, api_user: dict, base_url: str):
    wallet_a = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    wallet_b = _create_wallet(client, base_url, api_user["id"], "Savings", 50)

    response = client.post(
        f"{base_url}/transfers",
        json={
            "user_id": api_user["id"],
            "from_wallet_id": wallet_a["id"],
            "to_wallet_id": wallet_b["id"],
            "amount_cents": 100,
            "description": "Savings",
        },
    )

    assert response.status_code == 201
    data = response.json()
    assert data["from_wallet"]["balance_cents"] == 0
    assert data["to_wallet"]["balance_cents"] == 150
    assert data["outgoing"]["transfer_pair_id"] == data["incoming"]["transfer_pair_id"] == data["transfer_pair_id"]


def test_transfer_insufficient_funds(client: TestClient, api_user: dict, base_url: str):
    wallet_a = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    wallet_b = _create_wallet(client, base_url, api_user["id"], "Savings", 50)

    response = client.post(
        f"{base_url}/transfers",
        json={
            "user_id": api_user["id"],
            "from_wallet_id": wallet_a["id"],
            "to_wallet_id": wallet_b["id"],
            "amount_cents": 101,
            "description": "Too much",
        },
    )

    assert response.status_code == 409
    assert response.json()["error"] == "insufficient_funds"
    balances = {w["id"]: w["balance_cents"] for w in client.get(f"{base_url}/wallets").json()}
    assert balances[wallet_a["id"]] == 100
    assert balances[wallet_b["id"]] == 50


@pytest.mark.parametrize(
    "amount,same_wallet,status,error",
    [
        (0, False, 400, "invalid_amount"),
        (-10, False, 400, "invalid_amount"),
        (10, True, 400, "same_wallet"),
    ],
)
def test_transfer_rejections(client: TestClient, api_user: dict, base_url: str, amount, same_wallet, status, error):
    wallet_a = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    wallet_b = _create_wallet(client, base_url, api_user["id"], "Savings", 50)

    response = client.post(
        f"{base_url}/transfers",
        json={
            "user_id": api_user["id"],
            "from_wallet_id": wallet_a["id"],
            "to_wallet_id": wallet_a["id"] if same_wallet else wallet_b["id"],
            "amount_cents": amount,
            "description": "Check",
        },
    )

    assert response.status_code == status
    assert response.json()["error"] == error


def test_transfer_unknown_wallet(client: TestClient, api_user: dict, base_url: str):
    wallet_a = _create_wallet(client, base_url, api_user["id"], "Checking", 100)

    response = client.post(
        f"{base_url}/transfers",
        json={
            "user_id": api_user["id"],
            "from_wallet_id": wallet_a["id"],
            "to_wallet_id": str(uuid.uuid4()),
            "amount_cents": 10,
            "description": "Nowhere",
        },
    )

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_transfer_malformed_body(client: TestClient, base_url: str):
    response = client.post(f"{base_url}/transfers", json={"amount_cents": 10})
    assert response.status_code == 422


def test_card_charge_and_limit(client: TestClient, api_user: dict, base_url: str):
    card = _create_card(client, base_url)
    charge_url = f"{base_url}/credit-cards/{card['id']}/charges"

    first = client.post(charge_url, json={"user_id": api_user["id"], "amount_cents": 450, "description": "Rent"})
    assert first.status_code == 201
    assert first.json()["credit_card"]["available_cents"] == 50

    at_limit = client.post(charge_url, json={"user_id": api_user["id"], "amount_cents": 50, "description": "Books"})
    assert at_limit.status_code == 201
    assert at_limit.json()["credit_card"]["current_balance_cents"] == 500

    over = client.post(charge_url, json={"user_id": api_user["id"], "amount_cents": 1, "description": "Gum"})
    assert over.status_code == 409
    assert over.json()["error"] == "credit_limit_exceeded"


def test_pay_bill_endpoint(client: TestClient, api_user: dict, base_url: str):
    wallet = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    card = _create_card(client, base_url)
    client.post(
        f"{base_url}/credit-cards/{card['id']}/charges",
        json={"user_id": api_user["id"], "amount_cents": 30, "description": "Snacks"},
    )
    pay_url = f"{base_url}/credit-cards/{card['id']}/payments"

    over = client.post(pay_url, json={"user_id": api_user["id"], "amount_cents": 50, "from_wallet_id": wallet["id"]})
    assert over.status_code == 400
    assert over.json()["error"] == "invalid_amount"

    paid = client.post(pay_url, json={"user_id": api_user["id"], "amount_cents": 30, "from_wallet_id": wallet["id"]})
    assert paid.status_code == 201
    assert paid.json()["wallet"]["balance_cents"] == 70
    assert paid.json()["credit_card"]["current_balance_cents"] == 0
    assert paid.json()["transaction"]["type"] == "bill_payment"


def test_installment_lifecycle(client: TestClient, api_user: dict, base_url: str):
    wallet = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    start = date.today() - timedelta(days=1)

    created = client.post(
        f"{base_url}/installments",
        json={
            "wallet_id": wallet["id"],
            "description": "Laptop",
            "total_amount_cents": 10000,
            "total_installments": 3,
            "start_date": start.isoformat(),
        },
    )
    assert created.status_code == 201
    payments = created.json()["payments"]
    assert [p["amount_cents"] for p in payments] == [3333, 3333, 3334]

    upcoming = client.get(f"{base_url}/installment-payments/upcoming", params={"within_days": 10})
    assert upcoming.status_code == 200
    assert [p["payment_number"] for p in upcoming.json()] == [1]
    assert upcoming.json()[0]["overdue"] is True
    assert upcoming.json()[0]["installment_description"] == "Laptop"

    pay_url = f"{base_url}/installment-payments/{payments[0]['id']}/pay"
    first = client.post(pay_url)
    second = client.post(pay_url)
    assert first.status_code == second.status_code == 200
    assert second.json()["installment"]["paid_installments"] == 1
    assert second.json()["payment"]["status"] == "paid"

    cancelled = client.post(f"{base_url}/installments/{created.json()['id']}/cancel")
    assert cancelled.json()["status"] == "cancelled"

    refused = client.post(f"{base_url}/installment-payments/{payments[1]['id']}/pay")
    assert refused.status_code == 409
    assert refused.json()["error"] == "installment_not_active"


def test_repeated_payment_publishes_one_event(client: TestClient, api_user: dict, base_url: str):
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(202)

    client.app.dependency_overrides[get_event_client] = lambda: LedgerEventClient(
        webhook_url="http://subscriber.test/ledger-events", transport=httpx.MockTransport(handler)
    )
    wallet = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    created = client.post(
        f"{base_url}/installments",
        json={
            "wallet_id": wallet["id"],
            "description": "Sofa",
            "total_amount_cents": 5000,
            "total_installments": 2,
            "start_date": "2025-03-10",
        },
    ).json()
    received.clear()

    pay_url = f"{base_url}/installment-payments/{created['payments'][0]['id']}/pay"
    first = client.post(pay_url)
    second = client.post(pay_url)

    assert first.status_code == second.status_code == 200
    assert second.json()["installment"]["paid_installments"] == 1
    assert [event["event"] for event in received] == ["INSTALLMENT_PAYMENT_PAID"]
    assert received[0]["payment_number"] == 1


def test_transfer_by_non_member(client: TestClient, api_user: dict, base_url: str):
    wallet_a = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    wallet_b = _create_wallet(client, base_url, api_user["id"], "Savings", 50)
    outsider = client.post("/v1/users", json={"name": "Carla Dias", "email": "carla@example.com"}).json()

    response = client.post(
        f"{base_url}/transfers",
        json={
            "user_id": outsider["id"],
            "from_wallet_id": wallet_a["id"],
            "to_wallet_id": wallet_b["id"],
            "amount_cents": 10,
            "description": "Not mine",
        },
    )

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"
    balances = {w["id"]: w["balance_cents"] for w in client.get(f"{base_url}/wallets").json()}
    assert balances[wallet_a["id"]] == 100


@pytest.mark.parametrize("count", [1, 61])
def test_installment_invalid_count(client: TestClient, api_user: dict, base_url: str, count):
    wallet = _create_wallet(client, base_url, api_user["id"], "Checking", 100)

    response = client.post(
        f"{base_url}/installments",
        json={
            "wallet_id": wallet["id"],
            "description": "Phone",
            "total_amount_cents": 10000,
            "total_installments": count,
            "start_date": "2025-01-31",
        },
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_installment_count"


def test_transactions_record_and_amend(client: TestClient, api_user: dict, base_url: str):
    wallet = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    category = client.post(f"{base_url}/categories", json={"name": "Food", "type": "expense"}).json()

    recorded = client.post(
        f"{base_url}/transactions",
        json={
            "user_id": api_user["id"],
            "type": "expense",
            "wallet_id": wallet["id"],
            "amount_cents": 40,
            "description": "Market",
            "category_id": category["id"],
        },
    )
    assert recorded.status_code == 201

    amended = client.patch(
        f"{base_url}/transactions/{recorded.json()['id']}",
        json={"description": "Farmers market", "notes": "Organic"},
    )
    assert amended.status_code == 200
    assert amended.json()["description"] == "Farmers market"
    assert amended.json()["amount_cents"] == 40

    immutable = client.patch(f"{base_url}/transactions/{recorded.json()['id']}", json={"amount_cents": 1})
    assert immutable.status_code == 422

    listed = client.get(f"{base_url}/transactions", params={"type": "expense"}).json()
    assert [t["description"] for t in listed] == ["Farmers market"]

    unknown_type = client.get(f"{base_url}/transactions", params={"type": "refund"})
    assert unknown_type.status_code == 400


def test_delete_wallet(client: TestClient, api_user: dict, base_url: str):
    empty = client.post(f"{base_url}/wallets", json={"user_id": api_user["id"], "name": "Spare", "type": "cash"}).json()
    funded = _create_wallet(client, base_url, api_user["id"], "Checking", 100)

    assert client.delete(f"{base_url}/wallets/{empty['id']}").status_code == 204

    in_use = client.delete(f"{base_url}/wallets/{funded['id']}")
    assert in_use.status_code == 409
    assert in_use.json()["error"] == "wallet_in_use"


def test_reports(client: TestClient, api_user: dict, base_url: str):
    wallet_a = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    wallet_b = _create_wallet(client, base_url, api_user["id"], "Savings", 50)
    card = _create_card(client, base_url)
    client.post(
        f"{base_url}/transfers",
        json={
            "user_id": api_user["id"],
            "from_wallet_id": wallet_a["id"],
            "to_wallet_id": wallet_b["id"],
            "amount_cents": 30,
            "description": "Move",
        },
    )
    client.post(
        f"{base_url}/credit-cards/{card['id']}/charges",
        json={"user_id": api_user["id"], "amount_cents": 20, "description": "Taxi"},
    )

    totals = client.get(f"{base_url}/reports/totals").json()
    assert totals["totals_cents"]["income"] == 150
    assert totals["totals_cents"]["transfer_out"] == 30
    assert totals["net_cents"] == 130

    users = client.get(f"{base_url}/reports/users").json()
    assert users[0]["total_transactions"] == 5

    reconciliation = client.get(f"{base_url}/reports/reconciliation").json()
    assert reconciliation["consistent"] is True
    assert len(reconciliation["accounts"]) == 4


def test_unknown_cost_center(client: TestClient):
    response = client.get(f"/v1/cost-centers/{uuid.uuid4()}/reports/totals")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


def test_metrics_endpoint(client: TestClient, api_user: dict, base_url: str):
    """Test Prometheus metrics endpoint"""
    wallet_a = _create_wallet(client, base_url, api_user["id"], "Checking", 100)
    wallet_b = _create_wallet(client, base_url, api_user["id"], "Savings", 50)
    client.post(
        f"{base_url}/transfers",
        json={
            "user_id": api_user["id"],
            "from_wallet_id": wallet_a["id"],
            "to_wallet_id": wallet_b["id"],
            "amount_cents": 10,
            "description": "Move",
        },
    )

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "ledger_operations_total" in response.text
    assert "/v1/cost-centers/{cost_center_id}/transfers" in response.text


def test_storage_failure_maps_to_503(client: TestClient, base_url: str, monkeypatch):
    """Test database errors are reported apart from rejected requests"""

    def broken(self, cost_center_id):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(CostCenterDirectory, "list_wallets", broken)

    response = client.get(f"{base_url}/wallets")

    assert response.status_code == 503
    assert response.json()["error"] == "storage_unavailable"
