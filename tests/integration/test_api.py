"""Integration tests for API endpoints"""

from fastapi.testclient import TestClient
from tests.conftest import ETH, ETH_USD_PRICE, START, make_round
from vault_gateway.utils.date_utils import day_bucket


def as_caller(identity: str) -> dict:
    return {"X-Caller-ID": identity}


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["run_state"] == "running"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/accounts/deposit", json={"amount": ETH}, headers=as_caller("alice"))
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "vault_ledger_operations_total" in response.text


def test_deposit_and_withdraw_flow(client: TestClient, transfer_sink):
    response = client.post("/v1/accounts/deposit", json={"amount": 5 * ETH}, headers=as_caller("alice"))
    assert response.status_code == 200
    data = response.json()
    assert data["balance"] == 5 * ETH
    assert data["transaction"]["index"] == 0
    assert data["transaction"]["kind"] == "deposit"

    response = client.post("/v1/accounts/withdraw", json={"amount": 2 * ETH}, headers=as_caller("alice"))
    assert response.status_code == 200
    data = response.json()
    assert data["balance"] == 3 * ETH
    assert data["holdings"] == 3 * ETH
    assert data["transaction"]["index"] == 1
    assert transfer_sink.transfers == [("alice", 2 * ETH, data["transaction"]["reference"])]

    account = client.get("/v1/accounts/alice").json()
    assert account["active"] is True
    assert account["total_deposited"] == 5 * ETH
    assert account["total_withdrawn"] == 2 * ETH
    assert account["transaction_count"] == 2
    assert account["remaining_daily_allowance"] == 48 * ETH

    day = day_bucket(START)
    withdrawals = client.get(f"/v1/accounts/alice/withdrawals/{day}").json()
    assert withdrawals["withdrawn"] == 2 * ETH
    assert withdrawals["calendar_date"] == "2023-11-15"


def test_deposit_requires_caller(client: TestClient):
    response = client.post("/v1/accounts/deposit", json={"amount": ETH})
    assert response.status_code == 422


def test_deposit_below_minimum(client: TestClient):
    response = client.post("/v1/accounts/deposit", json={"amount": 10**14}, headers=as_caller("alice"))
    assert response.status_code == 422
    assert response.json()["error"] == "BelowMinimumDepositError"


def test_withdraw_exceeding_balance(client: TestClient):
    response = client.post("/v1/accounts/withdraw", json={"amount": ETH}, headers=as_caller("alice"))
    assert response.status_code == 422
    assert response.json()["error"] == "ExceedsBalanceError"


def test_failed_transfer_returns_502_and_keeps_balance(client: TestClient, transfer_sink):
    client.post("/v1/accounts/deposit", json={"amount": 5 * ETH}, headers=as_caller("alice"))
    transfer_sink.rejecting.add("alice")

    response = client.post("/v1/accounts/withdraw", json={"amount": ETH}, headers=as_caller("alice"))

    assert response.status_code == 502
    assert response.json()["error"] == "TransferFailedError"
    assert client.get("/v1/accounts/alice").json()["balance"] == 5 * ETH


def test_transactions_listing(client: TestClient):
    for amount in (ETH, 2 * ETH, 3 * ETH):
        client.post("/v1/accounts/deposit", json={"amount": amount}, headers=as_caller("alice"))

    data = client.get("/v1/accounts/alice/transactions?offset=1&limit=5").json()
    assert data["total"] == 3
    assert [t["index"] for t in data["transactions"]] == [1, 2]

    assert client.get("/v1/accounts/alice/transactions/2").json()["amount"] == 3 * ETH
    assert client.get("/v1/accounts/alice/transactions/9").status_code == 404


def test_interest_quote_and_payment(client: TestClient, clock):
    client.post("/v1/accounts/deposit", json={"amount": 100 * ETH}, headers=as_caller("alice"))
    clock.advance(365 * 86_400)

    quote = client.get("/v1/accounts/alice/interest").json()
    assert quote["interest"] == 5 * ETH

    # Anyone can trigger the payment
    paid = client.post("/v1/accounts/alice/interest", headers=as_caller("bob")).json()
    assert paid["interest"] == 5 * ETH
    again = client.post("/v1/accounts/alice/interest").json()
    assert again["interest"] == 0


def test_credit_score_update(client: TestClient):
    response = client.put("/v1/accounts/alice/credit-score", json={"score": 700}, headers=as_caller("admin"))
    assert response.status_code == 200
    assert response.json()["credit_score"] == 700

    response = client.put("/v1/accounts/alice/credit-score", json={"score": 900}, headers=as_caller("admin"))
    assert response.status_code == 422
    assert response.json()["error"] == "CreditScoreOutOfRangeError"

    response = client.put("/v1/accounts/alice/credit-score", json={"score": 700}, headers=as_caller("alice"))
    assert response.status_code == 403


def test_suspend_blocks_deposits_and_enables_drain(client: TestClient, transfer_sink):
    client.post("/v1/accounts/deposit", json={"amount": 4 * ETH}, headers=as_caller("alice"))

    assert client.post("/v1/admin/suspend", headers=as_caller("alice")).status_code == 403
    status = client.post("/v1/admin/suspend", headers=as_caller("pauser")).json()
    assert status["run_state"] == "suspended"

    response = client.post("/v1/accounts/deposit", json={"amount": ETH}, headers=as_caller("alice"))
    assert response.status_code == 409

    response = client.post(
        "/v1/admin/emergency-withdraw",
        json={"to": "vault-cold", "amount": 10 * ETH},
        headers=as_caller("treasurer"),
    )
    assert response.status_code == 200
    assert response.json()["amount"] == 4 * ETH
    assert transfer_sink.transfers[-1][:2] == ("vault-cold", 4 * ETH)

    status = client.post("/v1/admin/resume", headers=as_caller("pauser")).json()
    assert status["run_state"] == "running"
    assert status["holdings"] == 0


def test_oracle_latest_and_health(client: TestClient, feed_source):
    latest = client.get("/v1/oracle/prices/ETH/USD/latest")
    assert latest.status_code == 200
    assert latest.json()["price"] == ETH_USD_PRICE

    feed_source.set_latest("eth-usd", make_round(updated_at=START - 3 * 3600))
    stale = client.get("/v1/oracle/prices/ETH/USD/latest")
    assert stale.status_code == 422
    assert stale.json()["error"] == "InvalidFeedDataError"

    health = client.get("/v1/oracle/prices/ETH/USD/health")
    assert health.status_code == 200
    assert health.json() == {"symbol": "ETH/USD", "healthy": False, "last_update": 0, "price": 0}


def test_oracle_feed_configuration(client: TestClient):
    response = client.put(
        "/v1/oracle/feeds/BTC-USD",
        json={"source_ref": "btc-usd", "description": "BTC / USD"},
        headers=as_caller("treasurer"),
    )
    assert response.status_code == 403

    response = client.put(
        "/v1/oracle/feeds/BTC-USD",
        json={"source_ref": "btc-usd", "description": "BTC / USD", "min_price": 1, "max_price": 10**15},
        headers=as_caller("updater"),
    )
    assert response.status_code == 200
    assert response.json()["max_price"] == 10**15

    info = client.get("/v1/oracle/feeds/ETH/USD").json()
    assert info["decimals"] == 8

    assert client.get("/v1/oracle/prices/DOGE/latest").status_code == 404


def test_oracle_cache_lifecycle(client: TestClient):
    assert client.get("/v1/oracle/prices/ETH/USD/cache").status_code == 404

    refreshed = client.post("/v1/oracle/prices/ETH/USD/cache", headers=as_caller("updater"))
    assert refreshed.status_code == 200
    assert refreshed.json()["valid"] is True

    cached = client.get("/v1/oracle/prices/ETH/USD/cache").json()
    assert cached["price"] == ETH_USD_PRICE

    status = client.get("/v1/admin/status").json()
    assert status["oracle_update_count"] == 1

    assert client.delete("/v1/oracle/prices/ETH/USD/cache", headers=as_caller("updater")).status_code == 204
    assert client.get("/v1/oracle/prices/ETH/USD/cache").status_code == 404


def test_oracle_historical_round(client: TestClient, feed_source):
    feed_source.rounds[("eth-usd", 42)] = make_round(answer=10 * 10**8, updated_at=START - 86_400, round_id=42)

    data = client.get("/v1/oracle/prices/ETH/USD/rounds/42").json()
    assert data["price"] == 10 * 10**8
    assert data["timestamp"] == START - 86_400


def test_conversion_endpoint(client: TestClient):
    response = client.get(f"/v1/oracle/convert/ETH/USD?amount={ETH}")
    assert response.status_code == 200
    assert response.json()["converted"] == 2_000 * ETH

    response = client.get(f"/v1/oracle/convert/ETH/USD?amount={4_000 * ETH}&direction=from_reference")
    assert response.json()["converted"] == 2 * ETH
