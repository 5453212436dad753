"""Calculator endpoints — no auth, no datastore."""
import pytest


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_pairs(client):
    pairs = {p["symbol"]: p for p in client.get("/api/trade/pairs").json()}
    assert len(pairs) == 12
    assert pairs["USDJPY"]["pip_decimal_place"] == 2
    assert pairs["USDJPY"]["usd_is_base"] is True
    assert pairs["EURGBP"]["usd_is_quote"] is False


def test_pips(client):
    resp = client.post("/api/trade/pips", json={"symbol": "USDJPY", "price_from": 110.0, "price_to": 109.5})
    assert resp.status_code == 200
    body = resp.json()
    assert body["pips"] == 50.0
    assert body["direction"] == "down"
    assert body["known_pair"] is True


def test_pips_normalises_symbol_case(client):
    body = client.post("/api/trade/pips", json={"symbol": "usdjpy", "price_from": 110.0, "price_to": 110.5}).json()
    assert body["known_pair"] is True
    assert body["pip_size"] == pytest.approx(0.01)
    assert body["pips"] == 50.0
    assert body["direction"] == "up"


def test_profit(client):
    resp = client.post(
        "/api/trade/profit",
        json={
            "symbol": "eurusd",
            "direction": "Buy",
            "entry_price": 1.1,
            "exit_price": 1.105,
            "lot_size": 1,
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["profit"] == 500.0
    assert body["is_win"] is True
    assert body["status"] == "computed"
    assert body["formatted_profit"] == "$500.00"
    assert body["formatted_pips"] == "+50.0"


def test_profit_rejects_bad_direction(client):
    resp = client.post(
        "/api/trade/profit",
        json={"symbol": "EURUSD", "direction": "Long", "entry_price": 1.1, "exit_price": 1.2, "lot_size": 1},
    )
    assert resp.status_code == 422


def test_risk_reward(client):
    body = client.post(
        "/api/trade/risk-reward",
        json={"entry": 1.1, "stop_loss": 1.095, "take_profit": 1.115},
    ).json()
    assert body["ratio"] == 3.0
    assert body["ratio_label"] == "1:3.0"
    assert body["status"] == "computed"


def test_risk_reward_missing_target(client):
    body = client.post("/api/trade/risk-reward", json={"entry": 1.1, "stop_loss": 1.095}).json()
    assert body["ratio"] is None
    assert body["status"] == "invalid"


def test_position_size(client):
    resp = client.post(
        "/api/trade/position-size",
        json={"symbol": "EURUSD", "account_balance": 10000, "risk_percent": 1, "entry": 1.1, "stop_loss": 1.095},
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "risk_amount": 100.0,
        "lots": 0.2,
        "units": 20000,
        "status": "computed",
        "reason": None,
    }


def test_position_size_zero_distance(client):
    resp = client.post(
        "/api/trade/position-size",
        json={"symbol": "EURUSD", "account_balance": 10000, "risk_percent": 1, "entry": 1.1, "stop_loss": 1.1},
    )
    assert resp.status_code == 422
    assert "risk distance" in resp.json()["detail"]
