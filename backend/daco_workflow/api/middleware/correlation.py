"""
Correlation ID Middleware

Tags each request with a correlation ID and logs request completion.
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ...utils.logger import set_correlation_id, get_logger
from ...utils.idgen import generate_correlation_id

logger = get_logger(__name__)

# Longer client-supplied IDs are replaced
MAX_CORRELATION_ID_LENGTH = 128


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds correlation ID to all requests.

    - Reuses a sane X-Correlation-Id header, otherwise generates one
    - Sets it in the logging context and echoes it on the response
    - Logs method, path, status and duration
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        incoming = request.headers.get("X-Correlation-Id")
        if incoming and len(incoming) <= MAX_CORRELATION_ID_LENGTH:
            correlation_id = incoming
        else:
            correlation_id = generate_correlation_id()

        set_correlation_id(correlation_id)

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Correlation-Id"] = correlation_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({round(duration_ms, 2)}ms)"
        )
        return response
