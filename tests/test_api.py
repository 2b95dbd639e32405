from datetime import datetime

import pytest
from fastapi.testclient import TestClient

import backend.auth
from backend.auth import get_current_user
from backend.main import app
from library_reporting import config
from library_reporting.db import get_db, insert_borrowing

PASSWORD = "open-sesame"


@pytest.fixture
def client(db_path, monkeypatch):
    monkeypatch.setattr(config, "DB_PATH", db_path)
    monkeypatch.setattr(backend.auth, "LIBRARY_APP_PASSWORD", PASSWORD)
    return TestClient(app)


def _headers(client, email):
    res = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert res.status_code == 200
    return {"Authorization": f"Bearer {res.json()['access_token']}"}


@pytest.fixture
def admin(client):
    return _headers(client, "admin@library.local")


@pytest.fixture
def john(client):
    return _headers(client, "john@example.com")


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "success"


def test_login_rejects_bad_credentials(client):
    assert client.post("/api/auth/login", json={"email": "john@example.com", "password": "nope"}).status_code == 401
    assert client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD}).status_code == 401


def test_reports_require_auth(client):
    assert client.get("/api/reports/statistics").status_code == 401
    res = client.get("/api/reports/statistics", headers={"Authorization": "Bearer not-a-token"})
    assert res.status_code == 401


def test_generate_csv_report(client, admin):
    res = client.post("/api/reports/generate", headers=admin, json={
        "start_date": "2024-01-01", "end_date": "2024-01-31", "report_type": "borrowing", "format": "csv",
    })
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert res.headers["content-disposition"] == "attachment; filename=borrowing-report-2024-01-01.csv"
    assert res.headers["cache-control"] == "no-cache"
    assert len(res.text.strip().splitlines()) == 4


def test_generate_is_scoped_for_non_admins(client, john):
    res = client.post("/api/reports/generate", headers=john, json={
        "start_date": "2024-01-01", "end_date": "2024-01-31", "report_type": "borrowing", "format": "csv",
    })
    assert res.status_code == 200
    lines = res.text.strip().splitlines()
    assert len(lines) == 3
    assert all("John Doe" in line for line in lines[1:])


def test_generate_xlsx_by_default(client, admin):
    res = client.post("/api/reports/generate", headers=admin, json={
        "start_date": "2024-01-01", "end_date": "2024-01-31", "report_type": "overdue",
    })
    assert res.status_code == 200
    assert res.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert res.content[:2] == b"PK"


@pytest.mark.parametrize("body", [
    {"start_date": "2024-01-01", "end_date": "2024-01-31", "report_type": "popularity"},
    {"start_date": "2024-01-31", "end_date": "2024-01-01", "report_type": "borrowing"},
    {"start_date": "2024-01-01", "end_date": "2024-01-31", "report_type": "borrowing", "format": "pdf"},
])
def test_generate_validation_errors(client, admin, body):
    res = client.post("/api/reports/generate", headers=admin, json=body)
    assert res.status_code == 400


def test_statistics(client, admin, john):
    res = client.get("/api/reports/statistics", headers=admin)
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "success"
    assert body["data"]["total_books"] == 2
    assert body["data"]["analytics"]["total_records"] == 5

    mine = client.get("/api/reports/statistics", headers=john).json()["data"]
    assert mine["analytics"]["total_records"] == 3
    assert mine["analytics"]["most_active_borrower"] == "John Doe"


def test_period_analytics(client, admin):
    res = client.post("/api/reports/analytics", headers=admin,
                      json={"start_date": "2024-01-01", "end_date": "2024-01-31"})
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["period"]["start_date"].startswith("2024-01-01")
    assert data["analytics"]["total_borrowings"] == 3
    assert data["analytics"]["average_borrowing_duration"] == 16


def test_period_analytics_inverted_range(client, admin):
    res = client.post("/api/reports/analytics", headers=admin,
                      json={"start_date": "2024-02-01", "end_date": "2024-01-01"})
    assert res.status_code == 400


@pytest.mark.parametrize("path", ["/api/reports/export/last-month-overdue", "/api/reports/export/last-month-borrowing"])
def test_last_month_exports(client, admin, path):
    res = client.get(path, headers=admin, params={"format": "csv"})
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=last_month_" in res.headers["content-disposition"]

    res = client.get(path, headers=admin, params={"format": "doc"})
    assert res.status_code == 400


def test_generate_includes_loans_made_on_the_end_day(client, admin, db_path, john_id):
    with get_db(db_path) as conn:
        insert_borrowing(conn, 1, john_id, datetime(2024, 1, 31, 10), datetime(2024, 2, 14))
    body = {"start_date": "2024-01-31", "end_date": "2024-01-31", "report_type": "borrowing", "format": "csv"}
    res = client.post("/api/reports/generate", headers=admin, json=body)
    assert res.status_code == 200
    assert len(res.text.strip().splitlines()) == 2

    body["end_date"] = "2024-01-31T09:00:00"
    res = client.post("/api/reports/generate", headers=admin, json=body)
    assert len(res.text.strip().splitlines()) == 1


def test_period_analytics_accepts_timestamps(client, admin):
    res = client.post("/api/reports/analytics", headers=admin,
                      json={"start_date": "2024-01-01T00:00:00", "end_date": "2024-01-02T00:00:00Z"})
    assert res.status_code == 200
    assert res.json()["data"]["analytics"]["total_borrowings"] == 2


def test_user_without_borrower_is_forbidden(client):
    app.dependency_overrides[get_current_user] = lambda: {"sub": "someone", "is_admin": False}
    try:
        res = client.get("/api/reports/statistics")
    finally:
        app.dependency_overrides.clear()
    assert res.status_code == 403
