# app/middleware/metrics.py
import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings

logger = logging.getLogger(__name__)


def new_metrics() -> dict:
    return {"requests": 0, "errors": 0, "total_response_ms": 0.0}


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Collects in-process request metrics on app.state.metrics:
      - total requests
      - responses with status >= 500
      - total response time (ms)
    Requests slower than SLOW_REQUEST_MS are logged as warnings.
    NOTE: do NOT touch app.state in __init__, it may not exist while the middleware stack builds.
    """

    def __init__(self, app, dispatch: Callable = None):
        super().__init__(app, dispatch=dispatch)

    async def dispatch(self, request: Request, call_next):
        metrics = getattr(request.app.state, "metrics", None)
        if metrics is None:
            metrics = request.app.state.metrics = new_metrics()

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            # unhandled handler errors surface as 500s
            metrics["requests"] += 1
            metrics["errors"] += 1
            metrics["total_response_ms"] += (time.perf_counter() - start) * 1000.0
            logger.exception("%s %s failed", request.method, request.url.path)
            raise
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        metrics["requests"] += 1
        metrics["total_response_ms"] += elapsed_ms
        if response.status_code >= 500:
            metrics["errors"] += 1

        if elapsed_ms > settings.SLOW_REQUEST_MS:
            logger.warning(
                "%s %s took %.2f ms (status=%s)",
                request.method, request.url.path, elapsed_ms, response.status_code,
            )
        return response
