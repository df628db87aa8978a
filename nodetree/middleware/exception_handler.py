"""Exception handler middleware for structured error responses."""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from ..exceptions import NodeTreeError

logger = logging.getLogger(__name__)


async def nodetree_exception_handler(request: Request, exc: NodeTreeError) -> JSONResponse:
    """
    Handle service exceptions and return structured JSON responses.

    Client errors (4xx) are logged at WARNING, everything else at ERROR.

    Args:
        request: FastAPI request object
        exc: NodeTreeError instance

    Returns:
        JSONResponse with error details
    """
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        level,
        f"NodeTreeError: {exc.error_code.value}",
        extra={
            "error_code": exc.error_code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
            "status_code": exc.status_code
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
