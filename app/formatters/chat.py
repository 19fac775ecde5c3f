"""Shape a resolved flight into the chat platform's fixed reply JSON."""

from typing import Any, Dict, Optional, Tuple

from app.types import Airport, CandidateFlight
from app.utils.dates import format_local

MATCH_MESSAGE = "Match"
INVALID_DATE_MESSAGE = "Invalid Date"
NO_FLIGHTS_MESSAGE = "No flights found"


def airport_label(airport: Optional[Airport]) -> Optional[str]:
    if airport is None:
        return None
    return airport.name or airport.code_iata or airport.code_icao or airport.code or None


def airport_tz(airport: Optional[Airport]) -> str:
    return (airport.timezone if airport else None) or "UTC"


def flight_numbers(flight: CandidateFlight, fallback_iata: str) -> Tuple[str, str]:
    """Return (iata, icao) flight numbers, e.g. ("AK6322", "AXM6322")."""
    if flight.operator_iata and flight.flight_number:
        iata = f"{flight.operator_iata}{flight.flight_number}"
    else:
        iata = fallback_iata.upper()
    icao = flight.ident or iata
    return iata, icao


def format_flight_reply(flight: CandidateFlight, requested_ident: str) -> Dict[str, Any]:
    flightno_iata, flightno_icao = flight_numbers(flight, requested_ident)

    dep_iso = flight.scheduled_out or flight.estimated_out
    arr_iso = flight.scheduled_in or flight.estimated_in

    return {
        "ok": True,
        "message": MATCH_MESSAGE,
        "flightno_iata": flightno_iata,
        "flightno_icao": flightno_icao,
        "departure_date_time": format_local(dep_iso, airport_tz(flight.origin)),
        "departing_from": airport_label(flight.origin),
        "departure_gate": flight.gate_origin or None,
        "arrival_date_time": format_local(arr_iso, airport_tz(flight.destination)),
        "arriving_at": airport_label(flight.destination),
        "arrival_gate": flight.gate_destination or None,
    }


def format_failure(message: str) -> Dict[str, Any]:
    return {"ok": False, "message": message}
