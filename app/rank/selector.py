import sys
from typing import List, Optional
from app.types import CandidateFlight
from app.utils.dates import parse_iso

# Candidates without a usable departure time sort after everything else
MAX_DISTANCE = sys.maxsize


def departure_estimate(flight: CandidateFlight) -> Optional[int]:
    for iso in (flight.scheduled_out, flight.scheduled_off, flight.scheduled_departure):
        if iso:
            dt = parse_iso(iso)
            # first non-empty field decides, even if it doesn't parse
            return int(dt.timestamp()) if dt else None
    return None


def departure_score(flight: CandidateFlight, base_start: int) -> int:
    ts = departure_estimate(flight)
    if ts is None:
        return MAX_DISTANCE
    return abs(ts - base_start)


def pick_best_flight(flights: List[CandidateFlight], base_start: int) -> Optional[CandidateFlight]:
    """Pick the flight whose scheduled departure is closest to base_start.

    sorted() is stable, so equal scores keep list order and the first wins. If
    no candidate has a timestamp the first one in the list comes back.
    """
    if not flights:
        return None
    ranked = sorted(flights, key=lambda f: departure_score(f, base_start))
    return ranked[0]
