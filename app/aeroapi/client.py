import json
from typing import Any, Dict, Optional, Union

import httpx

from app.aeroapi.query import alerts_url, flights_url
from app.config import settings
from app.obs.logger import log_event
from app.obs.metrics import inc_counter
from app.types import ProviderResponse
from app.utils.text import excerpt


class AeroAPIClient:
    """Blocking AeroAPI client.

    Every call carries the x-apikey header and an explicit timeout. Transport
    failures (httpx.HTTPError, timeouts included) are raised to the caller;
    HTTP error statuses are returned as a ProviderResponse with ok=False.
    """

    def __init__(self, base: Optional[str] = None, api_key: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.base = (base or settings.AERO_BASE).rstrip("/")
        self.api_key = api_key or settings.AERO_KEY
        read_timeout = timeout or settings.AERO_TIMEOUT_SECONDS
        # Persistent HTTP client with HTTP/2 and explicit timeouts
        self._http = httpx.Client(
            http2=True,
            timeout=httpx.Timeout(connect=3.0, read=read_timeout, write=read_timeout, pool=read_timeout),
        )

    def _headers(self, with_body: bool = False) -> Dict[str, str]:
        headers = {
            "Accept": "application/json; charset=UTF-8",
            "x-apikey": self.api_key,
        }
        if with_body:
            headers["Content-Type"] = "application/json; charset=UTF-8"
        return headers

    @staticmethod
    def _to_response(r, url: str) -> ProviderResponse:
        raw = r.text or ""
        try:
            body = json.loads(raw) if raw else None
        except ValueError:
            body = None
        return ProviderResponse(ok=r.is_success, status=r.status_code, json_body=body, raw=raw, url=url)

    def fetch_flights(self, ident: str, start: Union[str, int],
                      end: Optional[int] = None) -> ProviderResponse:
        url = flights_url(self.base, ident, start, end)
        log_event("aeroapi_request", level="DEBUG", method="GET", url=url)
        try:
            r = self._http.get(url, headers=self._headers())
        except httpx.HTTPError:
            inc_counter("provider_calls_total", {"operation": "flights", "status": "error"})
            raise
        resp = self._to_response(r, url)
        inc_counter("provider_calls_total", {"operation": "flights", "status": str(resp.status)})
        log_event("aeroapi_response", level="DEBUG", url=url, status=resp.status, ok=resp.ok)
        return resp

    def create_alert(self, payload: Dict[str, Any]) -> ProviderResponse:
        url = alerts_url(self.base)
        log_event("aeroapi_request", level="DEBUG", method="POST", url=url,
                  payload=excerpt(json.dumps(payload)))
        try:
            r = self._http.post(url, json=payload, headers=self._headers(with_body=True))
        except httpx.HTTPError:
            inc_counter("provider_calls_total", {"operation": "alerts", "status": "error"})
            raise
        resp = self._to_response(r, url)
        inc_counter("provider_calls_total", {"operation": "alerts", "status": str(resp.status)})
        log_event("aeroapi_response", level="DEBUG", url=url, status=resp.status,
                  ok=resp.ok, body=excerpt(resp.raw))
        return resp

    def close(self) -> None:
        self._http.close()
