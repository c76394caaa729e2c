from __future__ import annotations

from utils.rate_limit import limiter


def test_healthcheck(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_create_and_list_expense(client):
    create_resp = client.post("/api/expenses", json={"amount": "12.50", "description": "coffee"})
    assert create_resp.status_code == 200
    payload = create_resp.json()
    assert payload["id"] == 1
    assert payload["amount"] == "12.50"
    assert payload["description"] == "coffee"
    assert payload["timestamp"]

    list_resp = client.get("/api/expenses")
    assert list_resp.status_code == 200
    assert list_resp.json() == [payload]


def test_list_is_empty_on_start(client):
    response = client.get("/api/expenses")
    assert response.status_code == 200
    assert response.json() == []


def test_create_rejects_invalid_amount(client, store):
    for amount in ["-5", "abc"]:
        response = client.post("/api/expenses", json={"amount": amount, "description": "coffee"})
        assert response.status_code == 400
        assert "message" in response.json()
    assert len(store) == 0


def test_create_rejects_empty_description(client, store):
    response = client.post("/api/expenses", json={"amount": "3", "description": "   "})
    assert response.status_code == 400
    assert len(store) == 0


def test_create_rejects_missing_fields(client, store):
    response = client.post("/api/expenses", json={"description": "coffee"})
    assert response.status_code == 400
    assert "amount" in response.json()["message"]
    assert len(store) == 0


def test_get_expense(client):
    created = client.post("/api/expenses", json={"amount": "1.00", "description": "gum"}).json()
    response = client.get(f"/api/expenses/{created['id']}")
    assert response.status_code == 200
    assert response.json() == created

    missing = client.get("/api/expenses/99")
    assert missing.status_code == 404
    assert missing.json() == {"message": "Expense not found"}


def test_update_expense(client):
    created = client.post("/api/expenses", json={"amount": "5", "description": "lunch"}).json()
    response = client.put(f"/api/expenses/{created['id']}", json={"amount": "6.75", "description": "big lunch"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["id"] == created["id"]
    assert updated["amount"] == "6.75"
    assert updated["description"] == "big lunch"
    assert updated["timestamp"] == created["timestamp"]


def test_update_unknown_expense(client, store):
    client.post("/api/expenses", json={"amount": "5", "description": "lunch"})
    before = store.list()
    response = client.put("/api/expenses/42", json={"amount": "1", "description": "ghost"})
    assert response.status_code == 404
    assert response.json() == {"message": "Expense not found"}
    assert store.list() == before


def test_update_with_invalid_payload(client, store):
    created = client.post("/api/expenses", json={"amount": "5", "description": "lunch"}).json()
    response = client.put(f"/api/expenses/{created['id']}", json={"amount": "-1", "description": "lunch"})
    assert response.status_code == 400
    assert store.get(created["id"]).description == "lunch"


def test_delete_expense_twice(client):
    created = client.post("/api/expenses", json={"amount": "5", "description": "lunch"}).json()
    first = client.delete(f"/api/expenses/{created['id']}")
    assert first.status_code == 200
    assert first.json() == {"success": True}

    second = client.delete(f"/api/expenses/{created['id']}")
    assert second.status_code == 404
    assert client.get("/api/expenses").json() == []


def test_delete_unexpected_failure(client, store, monkeypatch):
    def boom(expense_id):
        raise RuntimeError("store exploded")

    monkeypatch.setattr(store, "delete", boom)
    response = client.delete("/api/expenses/1")
    assert response.status_code == 500
    assert response.json() == {"message": "Error deleting expense"}


def test_non_integer_id_is_rejected(client):
    response = client.delete("/api/expenses/abc")
    assert response.status_code == 400


def test_update_expense_date(client):
    created = client.post("/api/expenses", json={"amount": "7.35", "description": "taxi"}).json()
    response = client.put(f"/api/expenses/{created['id']}/date", json={"timestamp": "2024-05-17T08:30:00Z"})
    assert response.status_code == 200
    moved = response.json()
    assert moved["timestamp"].startswith("2024-05-17T08:30:00")
    assert moved["amount"] == created["amount"]
    assert moved["description"] == created["description"]


def test_update_expense_date_missing_timestamp(client):
    created = client.post("/api/expenses", json={"amount": "1", "description": "a"}).json()
    response = client.put(f"/api/expenses/{created['id']}/date", json={})
    assert response.status_code == 400
    assert response.json() == {"message": "Timestamp is required"}


def test_update_expense_date_invalid_timestamp(client):
    created = client.post("/api/expenses", json={"amount": "1", "description": "a"}).json()
    response = client.put(f"/api/expenses/{created['id']}/date", json={"timestamp": "yesterday-ish"})
    assert response.status_code == 400


def test_update_expense_date_unknown_id(client):
    response = client.put("/api/expenses/5/date", json={"timestamp": "2024-05-17T08:30:00Z"})
    assert response.status_code == 404


def test_update_expense_date_unexpected_failure(client, store, monkeypatch):
    created = client.post("/api/expenses", json={"amount": "1", "description": "a"}).json()

    def boom(expense_id, timestamp):
        raise RuntimeError("store exploded")

    monkeypatch.setattr(store, "update_date", boom)
    response = client.put(f"/api/expenses/{created['id']}/date", json={"timestamp": "2024-05-17T08:30:00Z"})
    assert response.status_code == 500
    assert response.json() == {"message": "Error updating expense date"}


def test_daily_expenses(client):
    client.post("/api/expenses", json={"amount": "10", "description": "breakfast"})
    client.post("/api/expenses", json={"amount": "5.50", "description": "bus"})
    client.post("/api/expenses", json={"amount": "4.50", "description": "snack"})
    client.put("/api/expenses/1/date", json={"timestamp": "2024-03-01T10:00:00Z"})
    client.put("/api/expenses/2/date", json={"timestamp": "2024-03-01T18:00:00Z"})
    client.put("/api/expenses/3/date", json={"timestamp": "2024-03-02T09:00:00Z"})

    response = client.get("/api/expenses/daily")
    assert response.status_code == 200
    days = response.json()
    assert [d["date"] for d in days] == ["2024-03-02", "2024-03-01"]
    assert [d["total"] for d in days] == ["4.50", "15.50"]
    assert [e["id"] for e in days[1]["expenses"]] == [2, 1]


def test_oversized_request_is_rejected(client, store):
    response = client.post("/api/expenses", json={"amount": "1", "description": "x" * (70 * 1024)})
    assert response.status_code == 413
    assert len(store) == 0


def test_unknown_route_uses_message_body(client):
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert "message" in response.json()


def test_invalid_content_length_is_rejected(client, store):
    response = client.get("/api/expenses", headers={"Content-Length": "not-a-number"})
    assert response.status_code == 400
    assert response.json() == {"message": "Invalid Content-Length header."}


def test_long_description_is_accepted(client):
    response = client.post("/api/expenses", json={"amount": "1", "description": "x" * 256})
    assert response.status_code == 200
    assert len(response.json()["description"]) == 256


def test_amount_above_maximum_is_rejected(client, store):
    response = client.post("/api/expenses", json={"amount": "1e30", "description": "yacht"})
    assert response.status_code == 400
    assert "cannot exceed" in response.json()["message"]
    assert len(store) == 0


def test_rate_limit_returns_429(client, monkeypatch):
    monkeypatch.setenv("RATE_LIMIT", "2/minute")
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        statuses = [client.get("/api/expenses").status_code for _ in range(3)]
        assert statuses == [200, 200, 429]
        limited = client.get("/api/expenses")
        assert limited.status_code == 429
        assert limited.json()["message"].startswith("Rate limit exceeded")
    finally:
        limiter.reset()
