"""
Tests for the HTTP boundary.

Each test gets a fresh app over empty in-memory stores.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FlakyTransactionStorage, run
from finance_tracker.api import create_app
from finance_tracker.config import AppSettings
from finance_tracker.models.audit import AuditEventType
from finance_tracker.orchestrator import create_app_components, create_memory_storage


CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-headers": "Content-Type",
    "access-control-allow-methods": "GET,POST,PUT,DELETE,OPTIONS",
}


def _build_client(storage=None) -> TestClient:
    settings = AppSettings(bulk_update_batch_delay_ms=0, cors_allow_origin="*")
    components = create_app_components(
        storage=storage or create_memory_storage(),
        app_settings=settings,
    )
    return TestClient(create_app(components=components, app_settings=settings))


@pytest.fixture
def client():
    return _build_client()


def _transaction_payload(**overrides):
    payload = {
        "account": "acc1",
        "date": "2024-03-15",
        "description": "Grocery Store",
        "currency": "GBP",
        "amount": -50.0,
        "fee": 0,
        "category": "cat-food",
    }
    payload.update(overrides)
    return payload


def _transfer_payload(**overrides):
    payload = {
        "fromAccount": "acc1",
        "toAccount": "acc2",
        "amount": 100,
        "date": "2024-03-15",
        "description": "Savings",
        "currency": "GBP",
        "fee": 1.5,
    }
    payload.update(overrides)
    return payload


def _account_payload(**overrides):
    payload = {
        "accountName": "Main",
        "accountNumber": "12345678",
        "bankName": "Monzo",
        "accountType": "CHECKING",
        "currency": "GBP",
    }
    payload.update(overrides)
    return payload


def _assert_cors(response):
    for name, value in CORS_HEADERS.items():
        assert response.headers[name] == value


class TestCors:
    """Permissive CORS on every response."""

    @pytest.mark.parametrize("path", ["/transactions", "/anything/at/all", "/analytics"])
    def test_options_answers_empty_200(self, client, path):
        response = client.options(path)
        assert response.status_code == 200
        assert response.content == b""
        _assert_cors(response)

    def test_headers_on_success(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        _assert_cors(response)

    def test_headers_on_error(self, client):
        response = client.get("/transactions")
        assert response.status_code == 400
        _assert_cors(response)

    def test_unknown_path(self, client):
        response = client.get("/nowhere")
        assert response.status_code == 404
        assert response.json() == {"error": "Not found", "code": "not_found"}
        _assert_cors(response)


class TestTransferEndpoints:
    """POST /transactions/transfer and PUT .../convert-to-transfer."""

    def test_create_transfer(self, client):
        response = client.post("/transactions/transfer", json=_transfer_payload())

        assert response.status_code == 201
        body = response.json()
        assert set(body) == {"transferId", "outgoingTransaction", "incomingTransaction"}
        assert body["outgoingTransaction"]["amount"] == -100
        assert body["outgoingTransaction"]["fee"] == 1.5
        assert body["incomingTransaction"]["amount"] == 100
        assert body["incomingTransaction"]["fee"] == 0
        assert body["incomingTransaction"]["transferType"] == "incoming"

        listed = client.get("/transactions", params={"account": "acc2"}).json()
        assert listed["count"] == 1

    def test_null_fee_means_no_fee(self, client):
        response = client.post("/transactions/transfer", json=_transfer_payload(fee=None))

        assert response.status_code == 201
        assert response.json()["outgoingTransaction"]["fee"] == 0

    def test_fee_may_be_omitted(self, client):
        payload = _transfer_payload()
        del payload["fee"]
        response = client.post("/transactions/transfer", json=payload)

        assert response.status_code == 201
        assert response.json()["outgoingTransaction"]["fee"] == 0

    def test_same_account(self, client):
        response = client.post(
            "/transactions/transfer",
            json=_transfer_payload(toAccount="acc1"),
        )
        assert response.status_code == 400
        assert response.json() == {
            "error": "Cannot transfer to the same account",
            "code": "validation_error",
        }
        assert client.get("/transactions", params={"account": "acc1"}).json()["count"] == 0

    def test_missing_fields(self, client):
        response = client.post("/transactions/transfer", json={"fromAccount": "acc1"})
        assert response.status_code == 400
        assert response.json()["error"] == (
            "Missing required fields: toAccount, amount, date, description"
        )

    def test_bad_currency(self, client):
        response = client.post("/transactions/transfer", json=_transfer_payload(currency="USD"))
        assert response.status_code == 400
        assert response.json()["error"] == "Currency must be GBP or EUR"

    def test_invalid_json(self, client):
        response = client.post(
            "/transactions/transfer",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON in request body", "code": "parse_error"}

    def test_empty_body(self, client):
        response = client.post("/transactions/transfer")
        assert response.status_code == 400
        assert response.json()["error"] == "Request body is required"

    def test_convert_then_conflict(self, client):
        created = client.post("/transactions", json=_transaction_payload()).json()
        transaction_id = created["transactionId"]

        response = client.put(
            f"/transactions/{transaction_id}/convert-to-transfer",
            params={"account": "acc1"},
            json={"toAccount": "acc2"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["outgoingTransaction"]["transactionId"] == transaction_id
        assert body["outgoingTransaction"]["category"] == "transfer"
        assert body["incomingTransaction"]["account"] == "acc2"

        again = client.put(
            f"/transactions/{transaction_id}/convert-to-transfer",
            params={"account": "acc1"},
            json={"toAccount": "acc3"},
        )
        assert again.status_code == 409
        assert again.json() == {"error": "Transaction is already a transfer", "code": "conflict"}

    def test_convert_missing_transaction(self, client):
        response = client.put(
            "/transactions/nope/convert-to-transfer",
            params={"account": "acc1"},
            json={"toAccount": "acc2"},
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Transaction not found", "code": "not_found"}

    def test_convert_requires_account(self, client):
        response = client.put("/transactions/t1/convert-to-transfer", json={"toAccount": "acc2"})
        assert response.status_code == 400

    def test_convert_requires_to_account(self, client):
        response = client.put(
            "/transactions/t1/convert-to-transfer",
            params={"account": "acc1"},
            json={},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "toAccount is required"

    def test_failed_transfer_is_generic_500(self):
        storage = create_memory_storage()
        flaky = FlakyTransactionStorage()
        flaky.fail_put_accounts = {"acc2"}
        storage.transactions = flaky
        client = _build_client(storage)

        response = client.post("/transactions/transfer", json=_transfer_payload())

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to create transfer", "code": "internal_error"}
        assert client.get("/transactions", params={"account": "acc1"}).json()["count"] == 0


class TestBulkUpdateEndpoint:
    """POST /transactions/bulkUpdate."""

    def test_bulk_update(self, client):
        for _ in range(3):
            client.post("/transactions", json=_transaction_payload(description="TESCO"))
        client.post("/transactions", json=_transaction_payload(description="AMAZON"))

        response = client.post(
            "/transactions/bulkUpdate",
            json={"account": "acc1", "description": "TESCO", "newCategory": "groceries"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["updatedCount"] == 3
        assert body["outcome"] == "updated"
        filtered = client.get(
            "/transactions", params={"account": "acc1", "category": "groceries"}
        ).json()
        assert filtered["count"] == 3

    def test_outcomes_distinguished(self, client):
        payload = {"account": "acc1", "description": "TESCO", "newCategory": "groceries"}
        empty = client.post("/transactions/bulkUpdate", json=payload).json()
        client.post("/transactions", json=_transaction_payload(description="AMAZON"))
        no_match = client.post("/transactions/bulkUpdate", json=payload).json()

        assert empty["outcome"] == "no_transactions"
        assert no_match["outcome"] == "no_matches"

    def test_partial_failure_reports_count(self):
        storage = create_memory_storage()
        flaky = FlakyTransactionStorage()
        flaky.fail_batch_number = 2
        storage.transactions = flaky
        client = _build_client(storage)
        for _ in range(30):
            client.post("/transactions", json=_transaction_payload(description="TESCO"))

        response = client.post(
            "/transactions/bulkUpdate",
            json={"account": "acc1", "description": "TESCO", "newCategory": "groceries"},
        )

        assert response.status_code == 500
        assert response.json()["updatedCount"] == 25

    def test_missing_fields(self, client):
        response = client.post("/transactions/bulkUpdate", json={"account": "acc1"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: description, newCategory"

    def test_whitespace_description_is_a_value(self, client):
        client.post("/transactions", json=_transaction_payload(description="TESCO"))
        response = client.post(
            "/transactions/bulkUpdate",
            json={"account": "acc1", "description": " ", "newCategory": "groceries"},
        )

        assert response.status_code == 200
        assert response.json()["outcome"] == "no_matches"


class TestTransactionEndpoints:
    """Plain transaction CRUD."""

    def test_create_get_update_delete(self, client):
        created = client.post("/transactions", json=_transaction_payload())
        assert created.status_code == 201
        transaction_id = created.json()["transactionId"]
        assert created.json()["date"] == "2024-03-15"

        fetched = client.get(f"/transactions/{transaction_id}", params={"account": "acc1"})
        assert fetched.status_code == 200
        assert fetched.json()["amount"] == -50

        updated = client.put(
            f"/transactions/{transaction_id}",
            params={"account": "acc1"},
            json={"description": "Corner Shop", "account": "acc9", "transactionId": "x"},
        )
        assert updated.status_code == 200
        assert updated.json()["description"] == "Corner Shop"
        assert updated.json()["account"] == "acc1"
        assert updated.json()["transactionId"] == transaction_id

        deleted = client.delete(f"/transactions/{transaction_id}", params={"account": "acc1"})
        assert deleted.status_code == 204
        assert deleted.content == b""
        missing = client.get(f"/transactions/{transaction_id}", params={"account": "acc1"})
        assert missing.status_code == 404

    def test_list_requires_account(self, client):
        response = client.get("/transactions")
        assert response.json() == {
            "error": "account parameter is required",
            "code": "validation_error",
        }

    def test_list_by_date(self, client):
        client.post("/transactions", json=_transaction_payload(date="2024-03-15"))
        client.post("/transactions", json=_transaction_payload(date="2024-03-16"))

        body = client.get("/transactions", params={"account": "acc1", "date": "2024-03-16"}).json()

        assert body["count"] == 1
        assert body["transactions"][0]["date"] == "2024-03-16"

    def test_create_missing_fields(self, client):
        payload = _transaction_payload()
        del payload["fee"]
        response = client.post("/transactions", json=payload)
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required fields: fee"

    def test_update_without_fields(self, client):
        transaction_id = client.post("/transactions", json=_transaction_payload()).json()["transactionId"]
        response = client.put(
            f"/transactions/{transaction_id}",
            params={"account": "acc1"},
            json={"account": "acc2"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "No valid fields to update"

    def test_storage_failure_is_generic(self):
        storage = create_memory_storage()
        flaky = FlakyTransactionStorage()
        flaky.fail_put_accounts = {"acc1"}
        storage.transactions = flaky
        client = _build_client(storage)

        response = client.post("/transactions", json=_transaction_payload())

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "code": "internal_error"}
        [event] = run(storage.audit.get_recent_events())
        assert event.event_type == AuditEventType.STORAGE_ERROR


class TestAccountEndpoints:
    """Account CRUD."""

    def test_create_and_list(self, client):
        created = client.post("/accounts", json=_account_payload())
        assert created.status_code == 201
        body = created.json()
        assert body["accountId"]
        assert body["isActive"] is True

        client.post("/accounts", json=_account_payload(accountName="Old", isActive=False))
        assert client.get("/accounts").json()["count"] == 2
        active = client.get("/accounts", params={"isActive": "true"}).json()
        assert [a["accountName"] for a in active["accounts"]] == ["Main"]
        inactive = client.get("/accounts", params={"isActive": "false"}).json()
        assert [a["accountName"] for a in inactive["accounts"]] == ["Old"]

    def test_invalid_account_type(self, client):
        response = client.post("/accounts", json=_account_payload(accountType="PENSION"))
        assert response.status_code == 400
        assert response.json()["error"] == (
            "Account type must be CHECKING, SAVINGS, CREDIT, or INVESTMENT"
        )

    def test_missing_fields(self, client):
        response = client.post("/accounts", json={"accountName": "Main"})
        assert response.status_code == 400
        assert response.json()["error"] == (
            "Missing required fields: accountNumber, bankName, accountType, currency"
        )

    def test_update_keeps_identity(self, client):
        account_id = client.post("/accounts", json=_account_payload()).json()["accountId"]

        response = client.put(
            f"/accounts/{account_id}",
            json={"accountName": "Renamed", "accountId": "hijacked"},
        )

        assert response.status_code == 200
        assert response.json()["accountName"] == "Renamed"
        assert response.json()["accountId"] == account_id

    def test_update_invalid_currency(self, client):
        account_id = client.post("/accounts", json=_account_payload()).json()["accountId"]
        response = client.put(f"/accounts/{account_id}", json={"currency": "JPY"})
        assert response.json()["error"] == "Currency must be GBP or EUR"

    def test_get_missing(self, client):
        response = client.get("/accounts/nope")
        assert response.status_code == 404
        assert response.json()["error"] == "Account not found"

    def test_delete(self, client):
        account_id = client.post("/accounts", json=_account_payload()).json()["accountId"]
        assert client.delete(f"/accounts/{account_id}").status_code == 204
        assert client.get(f"/accounts/{account_id}").status_code == 404


class TestCategoryEndpoints:
    """Category CRUD."""

    def test_create_update_delete(self, client):
        created = client.post("/categories", json={"name": "Food", "color": "#00ff00"})
        assert created.status_code == 201
        category_id = created.json()["categoryId"]

        updated = client.put(f"/categories/{category_id}", json={"isActive": False})
        assert updated.json()["isActive"] is False

        assert client.delete(f"/categories/{category_id}").status_code == 204
        assert client.get("/categories").json() == {"categories": [], "count": 0}

    def test_name_required(self, client):
        response = client.post("/categories", json={"color": "red"})
        assert response.status_code == 400
        assert response.json()["error"] == "Missing required field: name"


class TestAnalyticsEndpoint:
    """GET /analytics."""

    def test_report(self, client):
        category_id = client.post("/categories", json={"name": "Food"}).json()["categoryId"]
        client.post("/transactions", json=_transaction_payload(category=category_id))
        client.post("/transactions", json=_transaction_payload(category="gone"))

        response = client.get("/analytics", params={"account": "acc1"})

        assert response.status_code == 200
        body = response.json()
        assert len(body["monthlyTrends"]) == 12
        assert body["summary"]["transactionCount"] == 2
        assert body["summary"]["totalExpenses"] == 100
        names = {b["category"]: b["categoryName"] for b in body["categoryBreakdown"]}
        assert names == {category_id: "Food", "gone": "Unknown"}

    def test_account_required(self, client):
        response = client.get("/analytics")
        assert response.status_code == 400
        assert response.json()["error"] == "account parameter is required"
