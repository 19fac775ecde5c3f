"""
Flight resolution: turn a user-supplied ident + calendar date into one flight.

Strategies run in a fixed order and stop at the first non-empty result:

1. exact date      /flights/{ident}?start=YYYY-MM-DD
2. epoch window    /flights/{ident}?start=<midnight-12h>&end=<midnight+36h>
3. code translation (IATA prefix -> ICAO prefix, exact date again), only for
   idents shaped like AK6322 whose prefix is in the airline code table

Provider failures inside a strategy count as "no flights" for that strategy;
the caller only ever sees found / invalid_date / no_flights_found.
"""

import re
from typing import List, Optional, Protocol, Tuple, Union

import httpx

from app.aeroapi.transform import flights_from_aeroapi
from app.iata.airlines import AirlineCodeMap
from app.obs.logger import log_event
from app.obs.metrics import inc_counter
from app.rank.selector import pick_best_flight
from app.types import (
    CandidateFlight,
    ProviderResponse,
    ResolutionOutcome,
    ResolutionStatus,
    Strategy,
)
from app.utils.dates import parse_ymd_to_start, search_window

_WHITESPACE_RE = re.compile(r"\s+")


class FlightsProvider(Protocol):
    def fetch_flights(self, ident: str, start: Union[str, int],
                      end: Optional[int] = None) -> ProviderResponse: ...


def normalize_ident(ident: Optional[str]) -> str:
    return _WHITESPACE_RE.sub("", str(ident or "")).upper()


class FlightResolver:
    def __init__(self, provider: FlightsProvider, airline_codes: AirlineCodeMap):
        self.provider = provider
        self.airline_codes = airline_codes

    def _query(self, strategy: Strategy, ident: str, start: Union[str, int],
               end: Optional[int] = None) -> List[CandidateFlight]:
        try:
            resp = self.provider.fetch_flights(ident, start, end)
        except httpx.HTTPError as e:
            log_event("resolve_step", level="WARNING", strategy=strategy.value, ident=ident,
                      error=f"{type(e).__name__}: {e}")
            return []
        flights = flights_from_aeroapi(resp.json_body) if resp.ok else []
        log_event("resolve_step", level="DEBUG", strategy=strategy.value, ident=ident,
                  status=resp.status, ok=resp.ok, count=len(flights))
        return flights

    def _candidates(self, ident: str, departure_date: str,
                    start: int) -> Tuple[List[CandidateFlight], Optional[Strategy], str]:
        date_str = departure_date.strip()

        flights = self._query(Strategy.EXACT_DATE, ident, date_str)
        if flights:
            return flights, Strategy.EXACT_DATE, ident

        window = search_window(start)
        flights = self._query(Strategy.EPOCH_WINDOW, ident, window.start, window.end)
        if flights:
            return flights, Strategy.EPOCH_WINDOW, ident

        translated = self.airline_codes.translate_ident(ident)
        if translated:
            log_event("resolve_translate", ident=ident, translated=translated,
                      airline=self.airline_codes.name_for(ident[:2]))
            flights = self._query(Strategy.CODE_TRANSLATION, translated, date_str)
            return flights, Strategy.CODE_TRANSLATION, translated

        return [], None, ident

    def resolve(self, flight_ident: Optional[str], departure_date: Optional[str]) -> ResolutionOutcome:
        ident = normalize_ident(flight_ident)
        start = parse_ymd_to_start(departure_date)
        if start is None or not ident:
            log_event("resolve_invalid", level="WARNING", ident=ident, departure_date=departure_date)
            inc_counter("flight_resolution_total", {"status": ResolutionStatus.INVALID_DATE.value, "strategy": "none"})
            return ResolutionOutcome(status=ResolutionStatus.INVALID_DATE, ident=ident)

        flights, strategy, queried = self._candidates(ident, departure_date, start)
        chosen = pick_best_flight(flights, start)
        if chosen is None:
            log_event("resolve_not_found", level="WARNING", ident=ident, departure_date=departure_date)
            inc_counter("flight_resolution_total", {"status": ResolutionStatus.NO_FLIGHTS_FOUND.value, "strategy": "none"})
            return ResolutionOutcome(status=ResolutionStatus.NO_FLIGHTS_FOUND, ident=ident)

        log_event(
            "resolve_found",
            strategy=strategy.value,
            ident=queried,
            candidates=len(flights),
            chosen_ident=chosen.ident,
            operator_iata=chosen.operator_iata,
            flight_number=chosen.flight_number,
        )
        inc_counter("flight_resolution_total", {"status": ResolutionStatus.FOUND.value, "strategy": strategy.value})
        return ResolutionOutcome(status=ResolutionStatus.FOUND, ident=queried, flight=chosen, strategy=strategy)
