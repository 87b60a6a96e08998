import uuid

from fastapi import Request

TRACE_ID_HEADER = "X-Trace-ID"


def ensure_trace_id(request: Request) -> str:
    """Ensure trace_id exists on request state.

    Reuses an incoming X-Trace-ID header so callers can correlate logs.
    """
    trace_id = getattr(request.state, "trace_id", None)
    if not trace_id:
        trace_id = request.headers.get(TRACE_ID_HEADER) or str(uuid.uuid4())
        request.state.trace_id = trace_id
    return trace_id
