import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class TraceIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get("X-Trace-ID") or str(uuid.uuid4())
        request.state.trace_id = trace_id
        request.state.user_id = None
        request.state.store_id = None
        request.state.role = None
        response: Response = await call_next(request)
        response.headers["X-Trace-ID"] = trace_id
        return response
