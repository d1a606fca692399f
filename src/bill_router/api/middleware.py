"""API middleware for request logging and correlation ids."""
from __future__ import annotations
import time
from uuid import uuid4
import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from ..utils.logging import bind_request_context

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        bind_request_context(request_id=request_id)
        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception as e:
            duration = int((time.monotonic() - start) * 1000)
            logger.error("request_error", method=request.method, path=request.url.path,
                         error=str(e), duration_ms=duration)
            return JSONResponse(status_code=500, content={"error": "Internal server error"},
                                headers={REQUEST_ID_HEADER: request_id})

        duration = int((time.monotonic() - start) * 1000)
        logger.info("request", method=request.method, path=request.url.path,
                    status=response.status_code, duration_ms=duration)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
