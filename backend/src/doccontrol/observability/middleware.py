"""Request correlation middleware.

Takes the caller's X-Request-ID (or mints a UUID), binds it to the logging
context for the duration of the request and echoes it on the response.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        request_info = {"method": request.method, "path": request.url.path}

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"{request.method} {request.url.path} failed: {exc}",
                extra={
                    **request_info,
                    "error_type": type(exc).__name__,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
                exc_info=True,
            )
            raise
        else:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    **request_info,
                    "status_code": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)
