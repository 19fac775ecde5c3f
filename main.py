from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Type, TypeVar

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from app.config import settings
from app.aeroapi.client import AeroAPIClient
from app.alerts.relay import ChatPlatformRelay, token_matches
from app.alerts.subscribe import AlertSubscriber
from app.formatters.chat import (
    INVALID_DATE_MESSAGE,
    NO_FLIGHTS_MESSAGE,
    format_failure,
    format_flight_reply,
)
from app.iata.airlines import AirlineCodeMap
from app.obs.context import user_ref_var
from app.obs.logger import log_event
from app.obs.middleware import ObservabilityMiddleware
from app.resolve.resolver import FlightResolver
from app.types import ChatRequest, ResolutionStatus, SubscribeRequest
from app.utils.text import excerpt

load_dotenv()

M = TypeVar("M", bound=BaseModel)


@lru_cache
def get_aero_client() -> AeroAPIClient:
    return AeroAPIClient()


@lru_cache
def get_airline_codes() -> AirlineCodeMap:
    return AirlineCodeMap.from_file(settings.AIRLINE_CODES_PATH)


@lru_cache
def get_relay() -> ChatPlatformRelay:
    return ChatPlatformRelay()


def get_resolver(
    client: AeroAPIClient = Depends(get_aero_client),
    codes: AirlineCodeMap = Depends(get_airline_codes),
) -> FlightResolver:
    return FlightResolver(client, codes)


def get_subscriber(
    resolver: FlightResolver = Depends(get_resolver),
    client: AeroAPIClient = Depends(get_aero_client),
) -> AlertSubscriber:
    return AlertSubscriber(resolver, client, settings.ALERTS_HOOK_BASE, settings.ALERTS_TOKEN)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: load the code table now so a bad AIRLINE_CODES_PATH fails fast
    codes = get_airline_codes()
    log_event("startup", env=settings.APP_ENV, aero_base=settings.AERO_BASE, airline_codes=len(codes))

    yield

    # Shutdown
    if get_aero_client.cache_info().currsize:
        get_aero_client().close()
    if get_relay.cache_info().currsize:
        get_relay().close()
    log_event("shutdown")


app = FastAPI(
    title="Flight Lookup & Departure Alerts Webhook",
    version="1.0.0",
    lifespan=lifespan,
)
app.add_middleware(ObservabilityMiddleware)


async def _read_body(request: Request, model: Type[M]) -> M:
    """Parse a JSON body leniently: anything that isn't a JSON object counts as empty."""
    try:
        data = await request.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        data = {}
    try:
        return model.model_validate(data)
    except ValidationError:
        return model()


@app.get("/")
async def root():
    return {
        "service": "Flight Lookup & Departure Alerts Webhook",
        "version": "1.0.0",
        "status": "running",
        "endpoints": ["/webhook/chat", "/webhook/subscribe", "/webhook/alerts/{token}"],
    }


@app.get("/health")
async def health():
    return {"status": "healthy", "service": "flight-alert-webhook"}


@app.get("/metrics")
async def metrics():
    from app.obs.metrics import get_metrics_snapshot
    return get_metrics_snapshot()


@app.post("/webhook/chat")
async def chat_webhook(request: Request, resolver: FlightResolver = Depends(get_resolver)):
    body = await _read_body(request, ChatRequest)
    log_event("chat_received", level="DEBUG", body=body.model_dump())

    if not body.flightIdent or not body.departureDate:
        log_event("chat_rejected", level="WARNING", reason="missing flightIdent or departureDate")
        return format_failure(INVALID_DATE_MESSAGE)

    try:
        outcome = await run_in_threadpool(resolver.resolve, body.flightIdent, body.departureDate)
        if outcome.status == ResolutionStatus.INVALID_DATE:
            return format_failure(INVALID_DATE_MESSAGE)
        if not outcome.found:
            return format_failure(NO_FLIGHTS_MESSAGE)

        reply = format_flight_reply(outcome.flight, body.flightIdent)
        log_event("chat_reply", level="DEBUG", reply=reply)
        return reply
    except Exception as e:
        log_event("chat_error", level="ERROR", status=ResolutionStatus.INTERNAL_ERROR.value,
                  error=f"{type(e).__name__}: {e}")
        return format_failure(NO_FLIGHTS_MESSAGE)


@app.post("/webhook/subscribe")
async def subscribe_webhook(request: Request, subscriber: AlertSubscriber = Depends(get_subscriber)):
    body = await _read_body(request, SubscribeRequest)
    user_ref_var.set(body.userRef)
    log_event("subscribe_received", level="DEBUG", body=body.model_dump(exclude={"userRef"}))

    try:
        result = await run_in_threadpool(subscriber.subscribe, body)
    except Exception as e:
        log_event("subscribe_error", level="ERROR", status=ResolutionStatus.INTERNAL_ERROR.value,
                  error=f"{type(e).__name__}: {e}")
        return format_failure("Internal error")

    log_event("subscribe_reply", level="DEBUG", reply=excerpt(result))
    return result


@app.post("/webhook/alerts/{token}")
async def alert_callback(token: str, request: Request, relay: ChatPlatformRelay = Depends(get_relay)):
    if not token_matches(token, settings.ALERTS_TOKEN):
        log_event("alert_callback_rejected", level="WARNING", reason="bad token")
        raise HTTPException(status_code=403, detail="Forbidden")

    try:
        alert: Any = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Body must be JSON")

    log_event("alert_callback_received", level="DEBUG", alert=excerpt(alert))
    return await run_in_threadpool(relay.forward, alert)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.PORT,
        log_level="info",
    )
