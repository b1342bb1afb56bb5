"""
Request/response logging middleware with request-id correlation.
"""
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from typing import Callable

from linxiq.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log each request and its response.

    Accepts an incoming X-Request-ID (or generates one), exposes it to log
    records through request_id_context, and echoes it on the response.
    Answer payloads are never logged.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(request_id)

        start_time = time.time()
        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"

        logger.info(
            f"Incoming request {method} {path}",
            extra={"method": method, "path": path, "client_host": client_host},
        )

        try:
            response = await call_next(request)
        except Exception:
            request_id_context.reset(token)
            raise

        duration_ms = round((time.time() - start_time) * 1000, 2)
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id

        extra_fields = {
            "method": method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "client_host": client_host,
        }
        caller = getattr(request.state, "caller", None)
        if caller is not None:
            extra_fields["caller_id"] = caller.person_id
            extra_fields["caller_role"] = caller.role.value
        message = f"{method} {path} -> {status_code} ({duration_ms}ms)"
        if status_code >= 500:
            logger.error(message, extra=extra_fields)
        elif status_code >= 400:
            logger.warning(message, extra=extra_fields)
        else:
            logger.info(message, extra=extra_fields)

        request_id_context.reset(token)
        return response
