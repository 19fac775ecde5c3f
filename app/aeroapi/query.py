from typing import Optional, Union
from urllib.parse import quote, urlencode


def flights_url(base: str, ident: str, start: Union[str, int],
                end: Optional[int] = None) -> str:
    """
    Build the "flights by identifier" URL.

    Calendar-date mode passes only start=YYYY-MM-DD; epoch-window mode passes
    start and end as epoch seconds. The ident goes into the path percent-encoded.
    """
    path = f"{base.rstrip('/')}/flights/{quote(str(ident), safe='')}"
    params = {"start": start}
    if end is not None:
        params["end"] = end
    return f"{path}?{urlencode(params)}"


def alerts_url(base: str) -> str:
    return f"{base.rstrip('/')}/alerts"
