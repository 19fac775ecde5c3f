from datetime import datetime, timedelta, timezone
from typing import Optional
import pytz
import re

from app.types import SearchWindow

_YMD_RE = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2})$")

# A flight's local departure date can sit up to a day either side of its UTC date
WINDOW_BEFORE = timedelta(hours=12)
WINDOW_AFTER = timedelta(hours=36)


def parse_ymd_to_start(text: Optional[str]) -> Optional[int]:
    """Validate a YYYY-MM-DD string and return UTC midnight as epoch seconds.

    Returns None for anything that is not lexically YYYY-MM-DD or that names a
    date which does not exist (2025-02-30, 2025-13-01).
    """
    m = _YMD_RE.match(str(text or "").strip())
    if not m:
        return None
    year, month, day = (int(g) for g in m.groups())
    try:
        start = datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        return None
    # round-trip check against the constructed instant
    if (start.year, start.month, start.day) != (year, month, day):
        return None
    return int(start.timestamp())


def search_window(start: int) -> SearchWindow:
    return SearchWindow(
        start=start - int(WINDOW_BEFORE.total_seconds()),
        end=start + int(WINDOW_AFTER.total_seconds()),
    )


def parse_iso(iso: Optional[str]) -> Optional[datetime]:
    """Parse a provider ISO-8601 timestamp ("2025-10-22T01:05:00Z") to an aware datetime."""
    if not iso:
        return None
    try:
        dt = datetime.fromisoformat(str(iso).strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_local(iso: Optional[str], tz: Optional[str]) -> Optional[str]:
    """Render an instant in the airport's own zone: '22-10-2025 09:05 (Asia/Kuala_Lumpur +08)'."""
    if not iso:
        return None
    dt = parse_iso(iso)
    if dt is None:
        return iso
    tz_label = tz or "UTC"
    try:
        zone = pytz.timezone(tz_label)
    except pytz.UnknownTimeZoneError:
        return iso
    local = dt.astimezone(zone)
    tz_short = local.strftime("%Z") or "GMT"
    return f"{local.strftime('%d-%m-%Y %H:%M')} ({tz_label} {tz_short})"
