from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class Airport(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: Optional[str] = None
    code: Optional[str] = None
    code_iata: Optional[str] = None
    code_icao: Optional[str] = None
    timezone: Optional[str] = Field(None, description="IANA zone, e.g. Asia/Kuala_Lumpur")


class CandidateFlight(BaseModel):
    """One flight record as returned by the provider's /flights/{ident}."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    ident: Optional[str] = None            # ICAO-style, e.g. AXM6322
    ident_icao: Optional[str] = None
    ident_iata: Optional[str] = None
    operator: Optional[str] = None
    operator_iata: Optional[str] = None
    flight_number: Optional[str] = None
    scheduled_out: Optional[str] = None    # gate departure
    estimated_out: Optional[str] = None
    scheduled_off: Optional[str] = None    # takeoff
    scheduled_departure: Optional[str] = None
    scheduled_in: Optional[str] = None
    estimated_in: Optional[str] = None
    origin: Optional[Airport] = None
    destination: Optional[Airport] = None
    gate_origin: Optional[str] = None
    gate_destination: Optional[str] = None


class SearchWindow(BaseModel):
    start: int  # epoch seconds
    end: int


class ProviderResponse(BaseModel):
    ok: bool
    status: Optional[int] = None
    json_body: Optional[Any] = None
    raw: str = ""
    url: str = ""


class ResolutionStatus(str, Enum):
    FOUND = "found"
    INVALID_DATE = "invalid_date"
    NO_FLIGHTS_FOUND = "no_flights_found"
    PROVIDER_ERROR = "provider_error"
    INTERNAL_ERROR = "internal_error"


class Strategy(str, Enum):
    EXACT_DATE = "exact_date"
    EPOCH_WINDOW = "epoch_window"
    CODE_TRANSLATION = "code_translation"


class ResolutionOutcome(BaseModel):
    status: ResolutionStatus
    ident: str = ""
    flight: Optional[CandidateFlight] = None
    strategy: Optional[Strategy] = None

    @property
    def found(self) -> bool:
        return self.status == ResolutionStatus.FOUND and self.flight is not None


class ChatRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    flightIdent: Optional[str] = None
    departureDate: Optional[str] = None


class SubscribeRequest(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    userRef: Optional[str] = None
    flightno_iata: Optional[str] = None
    flightno_icao: Optional[str] = None
    departureDate: Optional[str] = None
