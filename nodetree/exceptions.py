"""Exception hierarchy for the node tree service."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Node errors
    NODE_NOT_FOUND = "NODE_NOT_FOUND"

    # Navigation errors
    INSECURE_PATH = "INSECURE_PATH"
    NOT_MOUNTED = "NOT_MOUNTED"

    # Request errors
    BAD_REQUEST = "BAD_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    ACCESS_DENIED = "ACCESS_DENIED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class NodeTreeError(Exception):
    """
    Base exception for all service errors.

    Carries a human-readable message, a machine-readable error code, the HTTP
    status code to answer with and optional details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the JSON error body."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NodeNotFoundError(NodeTreeError):
    """Node not found in database."""

    def __init__(self, node_id: int):
        super().__init__(
            f"Node not found: {node_id}",
            ErrorCode.NODE_NOT_FOUND,
            status_code=404,
            details={"node_id": node_id}
        )


class InsecurePathError(NodeTreeError):
    """A node id token from the request contains control characters or traversal sequences."""

    def __init__(self, token: str):
        super().__init__(
            f"Insecure path {token!r}",
            ErrorCode.INSECURE_PATH,
            status_code=400,
            details={"token": token}
        )


class AccessDeniedError(NodeTreeError):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.ACCESS_DENIED,
            status_code=403,
            details=details,
        )


class NotMountedError(AccessDeniedError):
    """The navigated path lies outside the user's node mounts."""

    def __init__(self, node_id: int):
        super().__init__(
            f"Node ID {node_id} is not mounted.",
            details={"node_id": node_id},
        )
        self.error_code = ErrorCode.NOT_MOUNTED


class BadRequestError(NodeTreeError):
    """Request references a field or record that does not exist."""

    def __init__(self, message: str = "Bad request", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.BAD_REQUEST,
            status_code=400,
            details=details,
        )


class ValidationError(NodeTreeError):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(NodeTreeError):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )
