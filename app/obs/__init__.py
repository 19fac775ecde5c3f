"""Observability package.

ASGI middleware for request ids and latency, in-process metrics, structured
JSON logging and request-scoped context.
"""

__all__ = [
    "middleware",
    "metrics",
    "logger",
    "context",
]
