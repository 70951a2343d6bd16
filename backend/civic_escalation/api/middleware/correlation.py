"""
Correlation ID Middleware

Tags every request with a correlation ID. A manual escalation cycle run
through the API reuses it, so the request log line and every engine log
line of that cycle share one ID.
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ...utils.logger import get_logger, set_correlation_id
from ...utils.idgen import generate_correlation_id

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Read or generate X-Correlation-Id, expose it on the response, log timing"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        set_correlation_id(correlation_id)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - started) * 1000)

        response.headers[CORRELATION_HEADER] = correlation_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={"status": response.status_code, "duration_ms": duration_ms}
        )
        return response
