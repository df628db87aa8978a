"""Request context middleware: request id, session id, timing and request log.

Responsibilities (all handled in one pass):
- Generate or propagate ``X-Request-ID`` header
- Resolve the client's session id from header or cookie, issuing one if absent
- Measure request duration
- Log every request/response as structured JSON
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.config import settings
from ..core.logging_config import request_id_var, session_id_var

logger = logging.getLogger(__name__)

_SESSION_ID_RE = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


def resolve_session_id(request: Request) -> tuple[str, bool]:
    """Return ``(session_id, issued)``. Unknown or malformed ids are replaced."""
    sid = (
        request.headers.get(settings.session_header_name)
        or request.cookies.get(settings.session_cookie_name)
    )
    if sid and _SESSION_ID_RE.match(sid):
        return sid, False
    return uuid.uuid4().hex, True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Single middleware handling request-id, session-id, timing, and logging."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # --- Request ID ---
        rid = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request_id_var.set(rid)

        # --- Session ID ---
        sid, issued = resolve_session_id(request)
        request.state.session_id = sid
        session_id_var.set(sid)

        # --- Timing ---
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        # --- Response headers ---
        response.headers["X-Request-ID"] = rid
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        if issued:
            response.set_cookie(settings.session_cookie_name, sid, httponly=True, samesite="lax")

        # --- Structured request log ---
        logger.info(
            f"{request.method} {request.url.path} {response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        return response
