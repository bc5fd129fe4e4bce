from datetime import datetime, timedelta, timezone

import database
from database import get_db
from main import app


def test_root(client):
    assert client.get("/").json() == {"message": "Medicine Shop API running"}


def test_create_user_defaults_to_customer(client):
    res = client.post("/users", json={"name": "Karim", "email": "karim@medishop.com"})
    assert res.status_code == 201
    user = res.json()
    assert user["role"] == "customer"
    assert user["created_at"]
    assert client.get("/users/karim@medishop.com").json() == user


def test_duplicate_user_conflicts(client):
    client.post("/users", json={"email": "karim@medishop.com"})
    res = client.post("/users", json={"email": "karim@medishop.com", "role": "seller"})
    assert res.status_code == 409
    assert len(client.get("/users").json()) == 1


def test_invalid_user_payload(client):
    assert client.post("/users", json={"email": "not-an-email"}).status_code == 400
    assert client.post("/users", json={"email": "a@medishop.com", "role": "root"}).status_code == 400


def test_unknown_user_not_found(client):
    res = client.get("/users/ghost@medishop.com")
    assert res.status_code == 404
    assert res.json() == {"detail": "User not found"}


def test_categories(client):
    res = client.post("/categories", json={"name": "Tablet"})
    assert res.status_code == 201
    assert [c["name"] for c in client.get("/categories").json()] == ["Tablet"]


def test_health_blogs_newest_first(client, mongo):
    now = datetime.now(timezone.utc)
    mongo["healthblog"].insert_many([
        {"title": "old", "content": "...", "created_at": now - timedelta(days=1)},
        {"title": "new", "content": "...", "created_at": now},
    ])
    assert [b["title"] for b in client.get("/health-blogs").json()] == ["new", "old"]


def test_seed_once(client):
    first = client.post("/seed").json()
    assert first["seeded"] is True
    assert first["medicines"] == 3
    assert client.post("/seed").json()["seeded"] is False
    assert len(client.get("/companies").json()) == 2
    assert client.get("/users/admin@medishop.com").json()["role"] == "admin"

    banner = client.get("/medicines", params={"banner": "true"}).json()
    assert banner[0]["discount_price"] == 2.5 * (1 - 10 / 100)


def test_missing_database_is_server_error(client, monkeypatch):
    monkeypatch.setattr(database, "db", None)
    del app.dependency_overrides[get_db]
    res = client.get("/users")
    assert res.status_code == 500
    assert "Database not available" in res.json()["detail"]


def test_diagnostics(client, monkeypatch):
    monkeypatch.setattr(database, "db", None)
    body = client.get("/test").json()
    assert body["backend"] == "✅ Running"
    assert body["payment_gateway"] == "✅ Configured"


def test_mixed_case_email_reads_back(client):
    created = client.post("/users", json={"name": "Karim", "email": "Karim@MediShop.COM"}).json()
    assert created["email"] == "Karim@medishop.com"

    res = client.get("/users/Karim@MediShop.COM")
    assert res.status_code == 200
    assert res.json() == created


def test_malformed_email_lookup_is_bad_request(client):
    assert client.get("/users/not-an-email").status_code == 400
