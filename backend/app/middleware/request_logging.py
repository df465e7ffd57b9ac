"""
Request/response logging middleware.
"""
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request with structured fields and tag it with a request id.

    The id comes from the ``X-Request-ID`` header when the client sends one,
    otherwise a UUID is generated. It is bound to ``request_id_context`` for
    the duration of the request and echoed on the response.

    Probe paths log at DEBUG so a load balancer polling them does not flood
    the INFO stream; 4xx responses log at WARNING and 5xx at ERROR.
    """

    QUIET_PATHS = ("/health", "/ping")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(request_id)
        started = time.perf_counter()

        fields = {
            "method": request.method,
            "path": request.url.path,
            "client_host": request.client.host if request.client else "unknown",
        }
        routine_level = (
            logging.DEBUG if fields["path"].endswith(self.QUIET_PATHS) else logging.INFO
        )

        try:
            logger.log(routine_level, "Incoming request", extra=fields)
            response = await call_next(request)

            response.headers[REQUEST_ID_HEADER] = request_id
            fields["status_code"] = response.status_code
            fields["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)

            if response.status_code >= 500:
                logger.error("Server error response", extra=fields)
            elif response.status_code >= 400:
                logger.warning("Client error response", extra=fields)
            else:
                logger.log(routine_level, "Request completed", extra=fields)
            return response
        finally:
            request_id_context.reset(token)
