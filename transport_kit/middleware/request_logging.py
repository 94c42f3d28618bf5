"""Request Logging — HTTP middleware that reports failed and slow requests.

Invariants:
    - Responses with status >= 400, or slower than SLOW_REQUEST_SECONDS, log one
      INFO record with method, path, status_code and duration_ms extras
    - Fast successful responses log nothing
    - An exception escaping the app logs one ERROR record and is re-raised unchanged

Design Decisions:
    - Sits inside the CORS hook, so preflight requests answered by CORS are not logged
    - Durations use perf_counter and are reported in milliseconds, rounded to 0.01
"""

import logging
import time
from typing import Callable

from fastapi import Request

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 1.0


async def log_requests(request: Request, call_next: Callable):
    start_time = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception as e:
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.error(
            f"{request.method} {request.url.path} - ERROR: {e}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "duration_ms": duration_ms,
            },
        )
        raise

    process_time = time.perf_counter() - start_time
    # Only log slow requests or errors
    if process_time > SLOW_REQUEST_SECONDS or response.status_code >= 400:
        logger.info(
            f"{request.method} {request.url.path} - {response.status_code} - {process_time:.2f}s",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(process_time * 1000, 2),
            },
        )
    return response
