from __future__ import annotations

from datetime import date, timedelta

from fastapi.testclient import TestClient

from expense_api.core.errors import StorageError
from expense_api.main import create_app


def _body(**overrides):
    data = {"amount": 19.99, "category": "Food", "description": "lunch", "date": "2024-01-01"}
    data.update(overrides)
    return data


def test_create_returns_201_with_minor_units(client):
    resp = client.post("/expenses", json=_body())
    assert resp.status_code == 201
    data = resp.json()
    assert data["amount"] == 1999
    assert data["category"] == "Food"
    assert data["description"] == "lunch"
    assert data["date"] == "2024-01-01"
    assert data["idempotency_key"] is None
    assert set(data) == {
        "id", "amount", "category", "description", "date", "created_at", "idempotency_key",
    }

    listed = client.get("/expenses").json()
    assert len(listed) == 1
    assert listed[0]["amount"] == 1999
    assert listed[0]["category"] == "Food"
    assert listed[0]["id"] == data["id"]


def test_repeated_idempotency_key_returns_first_record(client):
    first = client.post("/expenses", json=_body(), headers={"Idempotency-Key": "abc"})
    second = client.post(
        "/expenses",
        json=_body(amount=50, category="Travel"),
        headers={"Idempotency-Key": "abc"},
    )
    assert first.status_code == 201
    assert second.status_code == 200
    assert second.json() == first.json()
    assert second.json()["idempotency_key"] == "abc"
    assert len(client.get("/expenses").json()) == 1


def test_blank_idempotency_key_is_ignored(client):
    for _ in range(2):
        resp = client.post("/expenses", json=_body(), headers={"Idempotency-Key": ""})
        assert resp.status_code == 201
    assert len(client.get("/expenses").json()) == 2


def test_validation_errors_return_400_with_message(client):
    tomorrow = (date.today() + timedelta(days=1)).isoformat()
    cases = [
        (_body(amount=0), "Amount must be a positive number"),
        (_body(amount="abc"), "Amount must be a positive number"),
        (_body(category="   "), "Category required"),
        (_body(description="x" * 256), "Description must be under 255 characters"),
        (_body(date=None), "Date required"),
        (_body(date="yesterday"), "Invalid date format"),
        (_body(date=tomorrow), "Date cannot be in the future"),
    ]
    for body, message in cases:
        resp = client.post("/expenses", json=body)
        assert resp.status_code == 400, body
        assert resp.json() == {"error": message}
    assert client.get("/expenses").json() == []


def test_missing_amount_is_invalid_amount(client):
    body = _body()
    del body["amount"]
    resp = client.post("/expenses", json=body)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Amount must be a positive number"}


def test_huge_amount_is_rejected_not_a_server_error(client):
    for amount in (1e27, "1e40", 1e300):
        resp = client.post("/expenses", json=_body(amount=amount))
        assert resp.status_code == 400, amount
        assert resp.json() == {"error": "Amount must be a positive number"}
    assert client.get("/expenses").json() == []


def test_boundary_values_succeed(client):
    today = date.today().isoformat()
    resp = client.post("/expenses", json=_body(description="x" * 255, date=today))
    assert resp.status_code == 201
    assert resp.json()["date"] == today


def test_malformed_body_returns_400(client):
    resp = client.post(
        "/expenses", content="not json", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert "error" in resp.json()

    resp = client.post("/expenses", json=["a", "list"])
    assert resp.status_code == 400

    resp = client.post("/expenses", json=_body(description=123))
    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body"}


def test_list_filter_and_sort(client):
    client.post("/expenses", json=_body(category="Food", date="2024-01-02"))
    client.post("/expenses", json=_body(category="Travel", date="2024-03-01"))
    client.post("/expenses", json=_body(category="Food", date="2024-02-01"))

    food = client.get("/expenses", params={"category": "Food"}).json()
    assert [e["date"] for e in food] == ["2024-01-02", "2024-02-01"]

    newest = client.get("/expenses", params={"sort": "date_desc"}).json()
    assert [e["date"] for e in newest] == ["2024-03-01", "2024-02-01", "2024-01-02"]

    both = client.get("/expenses", params={"category": "Food", "sort": "date_desc"}).json()
    assert [e["date"] for e in both] == ["2024-02-01", "2024-01-02"]

    assert len(client.get("/expenses", params={"category": ""}).json()) == 3
    assert client.get("/expenses", params={"category": "food"}).json() == []


def test_summary(client):
    assert client.get("/expenses/summary").json() == []
    client.post("/expenses", json=_body(amount=10, category="Food"))
    client.post("/expenses", json=_body(amount=30, category="Travel"))
    resp = client.get("/expenses/summary")
    assert resp.status_code == 200
    assert resp.json() == [
        {"category": "Travel", "total_amount": 3000, "percentage": 75.0},
        {"category": "Food", "total_amount": 1000, "percentage": 25.0},
    ]


def test_storage_failure_returns_internal_error(settings):
    app = create_app(settings_override=settings)

    def broken(*args, **kwargs):
        raise StorageError("disk I/O error")

    app.state.store.create_expense = broken
    with TestClient(app) as c:
        resp = c.post("/expenses", json=_body())
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal error"}


def test_unexpected_error_returns_generic_500(settings):
    app = create_app(settings_override=settings)

    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    app.state.store.summarize = broken
    with TestClient(app, raise_server_exceptions=False) as c:
        resp = c.get("/expenses/summary")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Unexpected server error"}


def test_unknown_route_returns_404(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not found"}


def test_health_and_request_id(client):
    resp = client.get("/health", headers={"X-Request-ID": "req-42"})
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "expenses": 0}
    assert resp.headers["X-Request-ID"] == "req-42"
    assert client.get("/").headers["X-Request-ID"]
