"""Structured, leveled JSON logging to stdout.

Low overhead, minimal dependencies, safe for production stdout collectors.
"""

from typing import Any, Dict
from datetime import datetime, timezone
import json

from app.config import settings
from app.obs.context import request_id_var, user_ref_var


LEVELS: Dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def _redact_ref(value: Any) -> Any:
    s = str(value) if value is not None else ""
    if not s:
        return s
    if len(s) < 4:
        return "***"
    return f"***{s[-4:]}"


def is_enabled(level: str) -> bool:
    threshold = LEVELS.get(settings.LOG_LEVEL, LEVELS["INFO"])
    return LEVELS.get(level.upper(), LEVELS["INFO"]) >= threshold


def log_event(event: str, **fields: Any) -> None:
    level = str(fields.pop("level", "INFO")).upper()
    if not is_enabled(level):
        return
    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        "request_id": request_id_var.get(),
    }
    if "user_ref" not in fields:
        payload["user_ref"] = _redact_ref(user_ref_var.get())

    # Merge remaining fields
    for k, v in fields.items():
        if k in ("user_ref", "userRef"):
            payload["user_ref"] = _redact_ref(v)
        else:
            payload[k] = v

    try:
        print(json.dumps(payload, separators=(",", ":"), default=str))
    except (TypeError, ValueError):
        # never let a log line take the request down
        pass
