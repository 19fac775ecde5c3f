"""Request context helpers using ContextVars.

Holds request-scoped identifiers (request_id, the chat platform's userRef)
so log lines can be correlated without threading them through every call.
"""

from contextvars import ContextVar
from typing import Optional


# Public ContextVars (names are stable API)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_ref_var: ContextVar[Optional[str]] = ContextVar("user_ref", default=None)


def clear_context() -> None:
    """Reset context variables to defaults."""
    request_id_var.set(None)
    user_ref_var.set(None)
