"""Request-scoped tracing context.

Request id and W3C traceparent live in contextvars so they follow the request
across ``asyncio.gather`` fan-out into the evidence collectors and are attached
to outbound Storage, Etherscan and SerpAPI calls.
"""

import uuid
from contextvars import ContextVar

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
trace_parent_ctx: ContextVar[str | None] = ContextVar("trace_parent", default=None)


def get_request_id() -> str | None:
    return request_id_ctx.get()


def set_request_id(value: str | None) -> str:
    """Set the request id in context, generating one when absent."""
    request_id = value or str(uuid.uuid4())
    request_id_ctx.set(request_id)
    return request_id


def set_trace_parent(value: str | None) -> None:
    trace_parent_ctx.set(value or None)


def clear_tracing_context() -> None:
    """Clear request-scoped tracing context after request completion."""
    request_id_ctx.set(None)
    trace_parent_ctx.set(None)


def get_tracing_headers() -> dict[str, str]:
    """Headers to propagate on outbound HTTP calls."""
    headers: dict[str, str] = {}

    if rid := request_id_ctx.get():
        headers["X-Request-ID"] = rid

    if tp := trace_parent_ctx.get():
        headers["traceparent"] = tp

    return headers
