"""Middleware for request correlation ids and access logging."""

import logging
import uuid
from time import perf_counter

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger("request")

REQUEST_ID_HEADER = "X-Request-Id"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach an X-Request-Id to every request/response and log start/end with timing."""

    def __init__(self, app: ASGIApp, excluded_paths: set[str] | None = None):
        super().__init__(app)
        self.excluded_paths = excluded_paths if excluded_paths is not None else {
            "/docs",
            "/redoc",
            "/openapi.json",
            "/favicon.ico",
        }

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER)
        req_id = incoming or str(uuid.uuid4())
        request.state.request_id = req_id

        if request.url.path in self.excluded_paths:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = req_id
            return response

        logger.info("request.start request_id=%s method=%s path=%s", req_id, request.method, request.url.path)
        t0 = perf_counter()
        response = await call_next(request)
        dt = int((perf_counter() - t0) * 1000)
        response.headers[REQUEST_ID_HEADER] = req_id
        logger.info(
            "request.end request_id=%s path=%s status_code=%s ms=%d",
            req_id,
            request.url.path,
            response.status_code,
            dt,
        )
        return response
