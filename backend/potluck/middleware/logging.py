"""
Potluck Backend: Request Logging Middleware
============================================

One access log line per request on the "potluck.access" logger:

    POST /posts 201 42.7ms [a1b2c3d4] user=5f0c... from 127.0.0.1

Level follows the status: 5xx ERROR, 4xx WARNING, otherwise INFO.
Request bodies, tokens and uploaded bytes are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from potluck.middleware.request_id import request_id_var

logger = logging.getLogger("potluck.access")

# Probed every few seconds by orchestrators
SKIP_PATHS = frozenset({"/health"})


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        # Set by the authentication gate, absent on public routes
        identity = getattr(request.state, "identity", None)
        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "user_id": str(identity.user_id) if identity is not None else "-",
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            _level_for(response.status_code),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms [%(request_id)s] "
            "user=%(user_id)s from %(client_ip)s",
            fields,
            extra={"access": fields},
        )
        return response
