# backend/rentmarket/middleware/structured_logging.py
from __future__ import annotations

import logging
import re
import time
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("rentmarket.request")

REQUEST_ID_HEADER = "X-Request-ID"
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,64}$")

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    return request_id_ctx.get()


def _request_id_from(request: Request) -> str:
    # client ids land in our logs verbatim, so only short opaque tokens are kept
    rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return rid if _SAFE_REQUEST_ID.match(rid) else uuid.uuid4().hex


def _caller(request: Request, dev_header: str) -> Optional[str]:
    who = request.headers.get(dev_header)
    if who:
        return who
    if (request.headers.get("Authorization") or "").lower().startswith("bearer "):
        return "bearer"
    return None


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags the request with an id and writes one access line when it finishes.

    The id comes from X-Request-ID when it looks like an opaque token,
    otherwise a fresh one is minted. It is bound to a ContextVar for the
    duration of the request, so every service log line picks it up, and it
    is echoed on the response.
    """

    def __init__(self, app, *, dev_header: str = "X-User-Email") -> None:
        super().__init__(app)
        self.dev_header = dev_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        t0 = time.perf_counter()
        rid = _request_id_from(request)
        request.state.request_id = rid
        token = request_id_ctx.set(rid)

        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            log.info(
                "%s %s -> %s",
                request.method,
                request.url.path,
                status_code,
                extra={
                    "event": "http_request",
                    "method": request.method,
                    "path": request.url.path,
                    "query": str(request.url.query) if request.url.query else "",
                    "status_code": status_code,
                    "latency_ms": int((time.perf_counter() - t0) * 1000),
                    "caller": _caller(request, self.dev_header),
                },
            )
            request_id_ctx.reset(token)
