"""
Departure alert subscription.

Resolves the flight the same way /webhook/chat does, then registers an AeroAPI
alert that fires 1, 3 and 5 minutes before departure plus cancellation and
diversion events. The provider calls back on ALERTS_HOOK_BASE/<token>.
"""

from typing import Any, Dict, Protocol
from urllib.parse import quote

import httpx

from app.formatters.chat import INVALID_DATE_MESSAGE, NO_FLIGHTS_MESSAGE, flight_numbers
from app.obs.logger import log_event
from app.obs.metrics import inc_counter
from app.resolve.resolver import FlightResolver, normalize_ident
from app.types import ProviderResponse, ResolutionStatus, SubscribeRequest
from app.utils.dates import parse_ymd_to_start
from app.utils.text import excerpt

IMPENDING_DEPARTURE_MINUTES = (1, 3, 5)

# departure must be on for impending_departure to fire
ALERT_EVENTS: Dict[str, bool] = {
    "departure": True,
    "cancelled": True,
    "diverted": True,
    "arrival": False,
    "filed": False,
    "out": False,
    "off": False,
    "on": False,
    "in": False,
    "hold_start": False,
    "hold_end": False,
}

SUBSCRIBED_MESSAGE = (
    "Subscription confirmed. You will receive alerts 1, 3, and 5 minutes before departure."
)


class AlertsProvider(Protocol):
    def create_alert(self, payload: Dict[str, Any]) -> ProviderResponse: ...


def alert_target_url(hook_base: str, token: str) -> str:
    return f"{hook_base.rstrip('/')}/{quote(token, safe='')}"


def build_alert_payload(ident_icao: str, start_ymd: str, target_url: str) -> Dict[str, Any]:
    return {
        "ident": ident_icao,
        "start": start_ymd,
        "end": start_ymd,
        "impending_departure": list(IMPENDING_DEPARTURE_MINUTES),
        "events": dict(ALERT_EVENTS),
        "target_url": target_url,
    }


def _failure(message: str, **extra: Any) -> Dict[str, Any]:
    return {"ok": False, "message": message, **extra}


class AlertSubscriber:
    def __init__(self, resolver: FlightResolver, provider: AlertsProvider,
                 hook_base: str, token: str):
        self.resolver = resolver
        self.provider = provider
        self.hook_base = hook_base
        self.token = token

    def subscribe(self, req: SubscribeRequest) -> Dict[str, Any]:
        if not req.userRef or not req.departureDate:
            log_event("subscribe_rejected", level="WARNING", reason="missing userRef or departureDate")
            return _failure("Missing userRef or departureDate")

        ident = normalize_ident(req.flightno_icao or req.flightno_iata)
        if not ident:
            log_event("subscribe_rejected", level="WARNING", reason="missing flight number")
            return _failure("Missing flightno_iata or flightno_icao")

        if not self.hook_base or not self.token:
            log_event("subscribe_misconfigured", level="ERROR", reason="ALERTS_HOOK_BASE or ALERTS_TOKEN unset")
            return _failure("Server missing alerts hook config")

        if parse_ymd_to_start(req.departureDate) is None:
            log_event("subscribe_rejected", level="WARNING", reason="bad departureDate",
                      departure_date=req.departureDate)
            return _failure(INVALID_DATE_MESSAGE)

        outcome = self.resolver.resolve(ident, req.departureDate)
        if outcome.status == ResolutionStatus.INVALID_DATE:
            return _failure(INVALID_DATE_MESSAGE)
        if not outcome.found:
            return _failure(NO_FLIGHTS_MESSAGE)

        flightno_iata, flightno_icao = flight_numbers(outcome.flight, req.flightno_iata or ident)
        payload = build_alert_payload(
            ident_icao=flightno_icao,
            start_ymd=req.departureDate.strip(),
            target_url=alert_target_url(self.hook_base, self.token),
        )

        try:
            resp = self.provider.create_alert(payload)
        except httpx.HTTPError as e:
            log_event("alert_create_failed", level="ERROR", ident=flightno_icao,
                      error=f"{type(e).__name__}: {e}")
            inc_counter("alerts_created_total", {"status": ResolutionStatus.PROVIDER_ERROR.value})
            return _failure("Provider error (unreachable)", provider_status=None, provider_body=excerpt(str(e)))

        if not resp.ok:
            log_event("alert_create_failed", level="WARNING", ident=flightno_icao,
                      provider_status=resp.status, provider_body=excerpt(resp.raw))
            inc_counter("alerts_created_total", {"status": ResolutionStatus.PROVIDER_ERROR.value})
            return _failure(
                f"Provider error ({resp.status})",
                provider_status=resp.status,
                provider_body=excerpt(resp.raw),
            )

        log_event("alert_created", ident=flightno_icao, provider_status=resp.status)
        inc_counter("alerts_created_total", {"status": "subscribed"})
        return {
            "ok": True,
            "status": "subscribed",
            "flightno_icao": flightno_icao,
            "flightno_iata": flightno_iata,
            "provider_status": resp.status,
            "provider_body": resp.json_body if resp.json_body is not None else excerpt(resp.raw),
            "message": SUBSCRIBED_MESSAGE,
        }
