import httpx
import pytest
from fastapi.testclient import TestClient

from main import app, get_aero_client, get_relay
from app.alerts.relay import ChatPlatformRelay


@pytest.fixture
def client(fake_client):
    app.dependency_overrides[get_aero_client] = lambda: fake_client
    app.dependency_overrides[get_relay] = lambda: ChatPlatformRelay(webhook_url="", auth="")
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_chat_match(client, fake_client, make_flight):
    fake_client.on("AK6322", "date", flights=[make_flight()])
    r = client.post("/webhook/chat", json={"flightIdent": "ak 6322", "departureDate": "2025-10-22"})

    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["message"] == "Match"
    assert body["flightno_iata"] == "AK6322"
    assert body["flightno_icao"] == "AXM6322"
    assert body["departing_from"] == "Kuala Lumpur Int'l"
    assert body["departure_gate"] == "P2"
    assert r.headers["x-request-id"]


def test_chat_uses_epoch_window_fallback(client, fake_client, make_flight):
    fake_client.on("AK6322", "epoch", flights=[make_flight()])
    r = client.post("/webhook/chat", json={"flightIdent": "AK6322", "departureDate": "2025-10-22"})
    assert r.json()["ok"] is True


@pytest.mark.parametrize("payload", [
    {"flightIdent": "AK6322", "departureDate": "2025-02-30"},
    {"flightIdent": "AK6322", "departureDate": "22/10/2025"},
    {"flightIdent": "AK6322", "departureDate": "２０２５-１０-２２"},
    {"flightIdent": "AK6322"},
    {"departureDate": "2025-10-22"},
    {},
])
def test_chat_invalid_date_is_200(client, fake_client, payload):
    r = client.post("/webhook/chat", json=payload)
    assert r.status_code == 200
    assert r.json() == {"ok": False, "message": "Invalid Date"}
    assert fake_client.calls == []


def test_chat_non_object_body_counts_as_missing(client):
    r = client.post("/webhook/chat", content=b"[1, 2]", headers={"content-type": "application/json"})
    assert r.json() == {"ok": False, "message": "Invalid Date"}
    r = client.post("/webhook/chat", content=b"not json", headers={"content-type": "application/json"})
    assert r.json() == {"ok": False, "message": "Invalid Date"}


def test_chat_no_flights(client, fake_client):
    r = client.post("/webhook/chat", json={"flightIdent": "ZZ123", "departureDate": "2025-10-22"})
    assert r.status_code == 200
    assert r.json() == {"ok": False, "message": "No flights found"}
    assert len(fake_client.calls) == 2


def test_chat_transport_errors_never_leak(client, fake_client):
    fake_client.on("AK6322", "date", error=httpx.ConnectError("boom"))
    fake_client.on("AK6322", "epoch", error=httpx.ReadTimeout("slow"))
    r = client.post("/webhook/chat", json={"flightIdent": "AK6322", "departureDate": "2025-10-22"})
    assert r.status_code == 200
    assert r.json() == {"ok": False, "message": "No flights found"}


def test_chat_unexpected_error_is_generic(client, fake_client):
    def explode(*args, **kwargs):
        raise RuntimeError("internal detail")
    fake_client.fetch_flights = explode
    r = client.post("/webhook/chat", json={"flightIdent": "AK6322", "departureDate": "2025-10-22"})
    assert r.status_code == 200
    assert r.json() == {"ok": False, "message": "No flights found"}
    assert "internal detail" not in r.text


def test_subscribe_success(client, fake_client, make_flight):
    fake_client.on("AK6322", "date", flights=[make_flight()])
    r = client.post("/webhook/subscribe", json={
        "userRef": "contact-1",
        "flightno_iata": "AK6322",
        "departureDate": "2025-10-22",
    })
    body = r.json()
    assert r.status_code == 200
    assert body["ok"] is True
    assert body["status"] == "subscribed"
    assert body["flightno_icao"] == "AXM6322"
    assert fake_client.alerts[0]["target_url"] == "https://hooks.test/alerts/s3cret"


def test_subscribe_provider_error(client, fake_client, make_flight, make_response):
    fake_client.on("AK6322", "date", flights=[make_flight()])
    fake_client.alert_result = make_response({"title": "Bad request"}, status=400)
    r = client.post("/webhook/subscribe", json={
        "userRef": "contact-1",
        "flightno_iata": "AK6322",
        "departureDate": "2025-10-22",
    })
    body = r.json()
    assert r.status_code == 200
    assert body["ok"] is False
    assert body["provider_status"] == 400
    assert "Bad request" in body["provider_body"]


def test_subscribe_internal_error(client, fake_client):
    def explode(*args, **kwargs):
        raise RuntimeError("kaboom")
    fake_client.fetch_flights = explode
    r = client.post("/webhook/subscribe", json={
        "userRef": "contact-1",
        "flightno_iata": "AK6322",
        "departureDate": "2025-10-22",
    })
    assert r.json() == {"ok": False, "message": "Internal error"}


def test_alert_callback_checks_token(client):
    assert client.post("/webhook/alerts/wrong", json={"a": 1}).status_code == 403
    r = client.post("/webhook/alerts/s3cret", json={"alert_id": 1})
    assert r.status_code == 200
    assert r.json() == {"ok": True, "relayed": False}


def test_oversized_body_is_rejected(client, fake_client):
    big = "x" * (200 * 1024)
    r = client.post("/webhook/chat", json={"flightIdent": big, "departureDate": "2025-10-22"})
    assert r.status_code == 413
    assert fake_client.calls == []


def test_chunked_oversized_body_is_rejected(client, fake_client):
    def chunks():
        yield b'{"flightIdent": "'
        for _ in range(40):
            yield b"x" * (10 * 1024)
        yield b'", "departureDate": "2025-10-22"}'

    r = client.post("/webhook/chat", content=chunks(), headers={"content-type": "application/json"})
    assert r.status_code == 413
    assert r.json() == {"ok": False, "message": "Payload too large"}
    assert fake_client.calls == []


def test_small_chunked_body_is_accepted(client, fake_client, make_flight):
    fake_client.on("AK6322", "date", flights=[make_flight()])

    def chunks():
        yield b'{"flightIdent": "AK6322", '
        yield b'"departureDate": "2025-10-22"}'

    r = client.post("/webhook/chat", content=chunks(), headers={"content-type": "application/json"})
    assert r.status_code == 200
    assert r.json()["message"] == "Match"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"
