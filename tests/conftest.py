import json
import os
import sys

import pytest

# Ensure project root is on sys.path so `import app` works in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Settings() is built at import time and AERO_KEY is required
os.environ.setdefault("AERO_KEY", "test-aero-key")
os.environ.setdefault("AERO_BASE", "https://aero.test/aeroapi")
os.environ.setdefault("ALERTS_HOOK_BASE", "https://hooks.test/alerts/")
os.environ.setdefault("ALERTS_TOKEN", "s3cret")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from app.iata.airlines import AirlineCodeMap  # noqa: E402
from app.obs.metrics import reset_metrics  # noqa: E402
from app.types import ProviderResponse  # noqa: E402


def flight_record(ident="AXM6322", scheduled_out="2025-10-22T01:05:00Z", **extra):
    """A trimmed-down AeroAPI /flights record."""
    record = {
        "ident": ident,
        "operator_iata": "AK",
        "flight_number": "6322",
        "scheduled_out": scheduled_out,
        "scheduled_in": "2025-10-22T02:10:00Z",
        "origin": {"code_iata": "KUL", "name": "Kuala Lumpur Int'l", "timezone": "Asia/Kuala_Lumpur"},
        "destination": {"code_iata": "PEN", "name": "Penang Int'l", "timezone": "Asia/Kuala_Lumpur"},
        "gate_origin": "P2",
        "gate_destination": None,
    }
    record.update(extra)
    return record


def provider_response(body=None, status=200, raw=None):
    text = raw if raw is not None else json.dumps(body)
    return ProviderResponse(ok=200 <= status < 300, status=status, json_body=body, raw=text)


class FakeAeroClient:
    """Stands in for AeroAPIClient; unknown queries answer 200 with no flights."""

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.alerts = []
        self.alert_result = provider_response({"alert_id": 42}, status=201)

    def on(self, ident, mode, flights=None, status=200, error=None):
        if error is not None:
            self.routes[(ident, mode)] = error
        else:
            self.routes[(ident, mode)] = provider_response({"flights": flights or []}, status=status)
        return self

    def fetch_flights(self, ident, start, end=None):
        mode = "date" if end is None else "epoch"
        self.calls.append((ident, mode, start, end))
        result = self.routes.get((ident, mode))
        if isinstance(result, Exception):
            raise result
        if result is None:
            return provider_response({"flights": []})
        return result

    def create_alert(self, payload):
        self.alerts.append(payload)
        if isinstance(self.alert_result, Exception):
            raise self.alert_result
        return self.alert_result

    def close(self):
        pass


@pytest.fixture(autouse=True)
def _clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def airline_codes():
    return AirlineCodeMap({"AK": "AXM", "MH": "MAS", "BA": "BAW"})


@pytest.fixture
def fake_client():
    return FakeAeroClient()


@pytest.fixture
def make_flight():
    return flight_record


@pytest.fixture
def make_response():
    return provider_response
