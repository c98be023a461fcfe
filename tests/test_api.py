from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from bloodbooking.core.deps import get_booking_service
from bloodbooking.main import app

from conftest import TZ


@pytest.fixture
def client(service):
    app.dependency_overrides[get_booking_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def _post(client, **overrides):
    body = {"name": "王小明", "email": "ming@example.com", "phone": "0912345678", "timeslot": "09:00"}
    body.update(overrides)
    return client.post("/api/booking", json=body)


def test_reservation_roundtrip(client):
    r = _post(client)
    assert r.status_code == 200
    booking_id = r.json()["id"]
    assert r.json()["status"] == "success"

    r = client.get("/api/booking", params={"type": "summary", "token": booking_id})
    data = r.json()["data"]
    assert data["bookingId"] == booking_id
    assert data["status"] == "pending"
    assert data["deadline"].startswith("2026-03-08T00:00:00")

    r = client.get("/api/booking", params={"type": "confirm", "token": booking_id})
    assert r.json() == {"status": "success", "message": "預約確認成功"}

    r = client.get("/api/booking", params={"type": "confirm", "token": booking_id})
    assert r.json()["status"] == "info"

    r = client.get("/api/booking", params={"type": "cancel", "token": booking_id})
    assert r.json()["status"] == "success"

    r = client.get("/api/booking", params={"type": "confirm", "token": booking_id})
    assert r.json()["status"] == "canceled"


def test_availability_payload(client, settings_provider, clock):
    _post(client)
    clock.current = datetime(2026, 3, 9, 12, 0, tzinfo=TZ)

    r = client.get("/api/booking", params={"type": "availability"})

    body = r.json()
    assert body["status"] == "success"
    assert body["data"] == {"09:00": 0, "09:30": 1}
    assert body["bookingClosed"] is True
    assert body["notYetOpen"] is False
    assert body["activityInfo"]["bookingCutoffDate"] == "2026/03/08"
    assert body["activityInfo"]["placeMapUrl"] == "https://maps.app.goo.gl/abc"


def test_validation_error_is_structured(client):
    r = _post(client, phone="12345")
    assert r.status_code == 400
    assert r.json() == {"status": "error", "message": "電話格式不正確"}


def test_missing_fields(client):
    r = client.post("/api/booking", json={"name": "王小明"})
    assert r.status_code == 400
    assert r.json()["status"] == "error"


def test_conflicts(client):
    _post(client)

    r = _post(client, phone="0987654321")
    assert r.status_code == 409
    assert r.json() == {"status": "error", "message": "此電子郵件已預約過"}

    r = _post(client, email="other@example.com", phone="0987654321")
    assert r.status_code == 409
    assert r.json() == {"status": "error", "message": "此時段已額滿"}


def test_unknown_token(client):
    r = client.get("/api/booking", params={"type": "confirm", "token": "Q1-2026-00000000"})
    assert r.status_code == 404
    assert r.json() == {"status": "error", "message": "查無預約資料"}


@pytest.mark.parametrize(
    "params,message",
    [
        ({}, "缺少 type"),
        ({"type": "summary"}, "缺少 token"),
        ({"type": "image", "id": "abc"}, "未知的請求類型"),
    ],
)
def test_bad_queries(client, params, message):
    r = client.get("/api/booking", params=params)
    assert r.json() == {"status": "error", "message": message}


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": True}


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"phone": 912345678}, "電話格式不正確"),
        ({"timeslot": "09:00:00"}, "時段無效，請重新選擇"),
        ({"timeslot": ["09:00"]}, "時段無效，請重新選擇"),
        ({"email": None}, "Email 格式不正確，請重新輸入"),
        ({"name": "王" * 300}, "姓名格式不正確"),
    ],
)
def test_malformed_fields_get_field_messages(client, overrides, message):
    r = _post(client, **overrides)
    assert r.status_code == 400
    assert r.json() == {"status": "error", "message": message}
