from typing import Any, List

from pydantic import ValidationError

from app.types import CandidateFlight


def flights_from_aeroapi(json_obj: Any) -> List[CandidateFlight]:
    """Pull the `flights` list out of a /flights/{ident} body.

    Anything that is not a list of objects counts as no flights; single records
    that fail validation are dropped rather than sinking the whole list.
    """
    if not isinstance(json_obj, dict):
        return []
    raw = json_obj.get("flights")
    if not isinstance(raw, list):
        return []
    items: List[CandidateFlight] = []
    for f in raw:
        if not isinstance(f, dict):
            continue
        try:
            items.append(CandidateFlight.model_validate(f))
        except ValidationError:
            continue
    return items
