from typing import Any, Final

EXCERPT_LIMIT: Final[int] = 800


def excerpt(value: Any, limit: int = EXCERPT_LIMIT) -> str:
    """
    Bound a text payload for logs and error replies, e.g. 'abc…[+1200 chars]'.
    """
    text = "" if value is None else str(value)
    if len(text) <= limit:
        return text
    return f"{text[:limit]} …[+{len(text) - limit} chars]"
