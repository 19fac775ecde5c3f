"""ASGI middleware: request ids, body size cap (declared or streamed), latency and request logging."""

from typing import Callable, Any, List, Optional, Tuple
import json
import time
import uuid

from app.config import settings
from app.obs.context import clear_context, request_id_var
from app.obs.logger import log_event
from app.obs.metrics import record_timing, inc_counter

REQUEST_ID_HEADER = b"x-request-id"


def _header(scope: dict, name: bytes) -> Optional[str]:
    for k, v in scope.get("headers") or []:
        if k.lower() == name:
            return v.decode("latin-1")
    return None


class ObservabilityMiddleware:
    def __init__(self, app: Any, max_body_bytes: Optional[int] = None):
        self.app = app
        self.max_body_bytes = max_body_bytes or settings.MAX_BODY_BYTES

    async def _reject_too_large(self, send: Callable[[dict], Any], req_id: str) -> None:
        body = json.dumps({"ok": False, "message": "Payload too large"}).encode()
        await send({
            "type": "http.response.start",
            "status": 413,
            "headers": [
                (b"content-type", b"application/json"),
                (b"content-length", str(len(body)).encode()),
                (REQUEST_ID_HEADER, req_id.encode()),
            ],
        })
        await send({"type": "http.response.body", "body": body})

    async def _buffer_body(self, receive: Callable) -> Tuple[List[dict], int, bool]:
        """Read the request body up front, counting bytes across chunks.

        Returns (messages, bytes_seen, too_large); reading stops as soon as the
        running total passes the cap.
        """
        messages: List[dict] = []
        total = 0
        while True:
            message = await receive()
            messages.append(message)
            if message.get("type") != "http.request":
                return messages, total, False
            total += len(message.get("body", b""))
            if total > self.max_body_bytes:
                return messages, total, True
            if not message.get("more_body", False):
                return messages, total, False

    async def __call__(self, scope: dict, receive: Callable, send: Callable[[dict], Any]):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        clear_context()
        req_id = _header(scope, REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        request_id_var.set(req_id)
        method = scope.get("method", "")
        route = scope.get("path", "")
        start = time.monotonic()
        status_code = 500

        async def send_wrapper(message: dict):
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 200))
                headers = list(message.get("headers") or [])
                headers.append((REQUEST_ID_HEADER, req_id.encode()))
                message = {**message, "headers": headers}
            await send(message)

        try:
            declared = _header(scope, b"content-length")
            if declared and declared.isascii() and declared.isdigit() and int(declared) > self.max_body_bytes:
                status_code = 413
                log_event("request_rejected", level="WARNING", route=route, bytes=int(declared))
                await self._reject_too_large(send, req_id)
                return

            # chunked bodies carry no content-length, so count what actually arrives
            pending, seen, too_large = await self._buffer_body(receive)
            if too_large:
                status_code = 413
                log_event("request_rejected", level="WARNING", route=route, bytes=seen)
                await self._reject_too_large(send, req_id)
                return

            async def replay() -> dict:
                if pending:
                    return pending.pop(0)
                return await receive()

            await self.app(scope, replay, send_wrapper)
        finally:
            elapsed_ms = (time.monotonic() - start) * 1000.0
            record_timing("request_latency_ms", elapsed_ms, {"route": route})
            inc_counter("requests_total", {"route": route, "status": str(status_code)})
            log_event(
                "request",
                method=method,
                route=route,
                status=status_code,
                ms_total=round(elapsed_ms, 2),
            )
