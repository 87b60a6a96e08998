"""Request tracing middleware."""

from fastapi import Request

from core.utils import TRACE_ID_HEADER, ensure_trace_id


async def trace_id_middleware(request: Request, call_next):
    """Ensure every request has a trace ID in state and response headers."""
    trace_id = ensure_trace_id(request)
    response = await call_next(request)
    response.headers[TRACE_ID_HEADER] = trace_id
    return response
