"""Forward AeroAPI alert callbacks to the chat platform's inbound webhook."""

import hmac
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.obs.logger import log_event
from app.obs.metrics import inc_counter
from app.utils.text import excerpt


def token_matches(candidate: str, expected: str) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(str(candidate).encode(), expected.encode())


class ChatPlatformRelay:
    def __init__(self, webhook_url: Optional[str] = None, auth: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.webhook_url = settings.CHAT_PLATFORM_WEBHOOK_URL if webhook_url is None else webhook_url
        self.auth = settings.CHAT_PLATFORM_AUTH if auth is None else auth
        read_timeout = timeout or settings.AERO_TIMEOUT_SECONDS
        self._http = httpx.Client(timeout=httpx.Timeout(connect=3.0, read=read_timeout,
                                                        write=read_timeout, pool=read_timeout))

    @property
    def enabled(self) -> bool:
        return bool(self.webhook_url)

    def forward(self, alert: Any) -> Dict[str, Any]:
        if not self.enabled:
            log_event("alert_relay_skipped", reason="CHAT_PLATFORM_WEBHOOK_URL unset",
                      alert=excerpt(alert, 300))
            return {"ok": True, "relayed": False}

        headers = {"Content-Type": "application/json; charset=UTF-8"}
        if self.auth:
            headers["Authorization"] = self.auth
        try:
            r = self._http.post(self.webhook_url, json=alert, headers=headers)
        except httpx.HTTPError as e:
            log_event("alert_relay_failed", level="ERROR", error=f"{type(e).__name__}: {e}")
            inc_counter("alerts_relayed_total", {"status": "error"})
            return {"ok": False, "relayed": False, "message": "Relay failed"}

        inc_counter("alerts_relayed_total", {"status": str(r.status_code)})
        if not r.is_success:
            log_event("alert_relay_failed", level="ERROR", upstream_status=r.status_code,
                      body=excerpt(r.text))
            return {"ok": False, "relayed": False, "message": "Relay failed", "upstream_status": r.status_code}

        log_event("alert_relayed", upstream_status=r.status_code)
        return {"ok": True, "relayed": True, "upstream_status": r.status_code}

    def close(self) -> None:
        self._http.close()
