"""Explicit per-request session handle.

The request context middleware assigns every client a session id (cookie or
header). ``SessionContext`` binds that id to one bag, named after the tree
table, so the navigator and the permission gate read and write only their
own keys.
"""

from typing import Any, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .config import settings
from ..database import get_db
from ..repositories.session_repository import SessionRepository

# Keys inside the tree bag
CURRENT_NODE_KEY = "current_node"
CURRENT_IDS_KEY = "current_ids"
NEW_RECORDS_KEY = "new_records"
ALLOWED_ROOTS_KEY = "allowed_roots"


class SessionContext:
    """Key-value bag scoped to (session id, bag name). Lives for one request."""

    def __init__(self, db: Session, session_id: str, bag: Optional[str] = None):
        self.session_id = session_id
        self.bag = bag or settings.tree_table
        self._repo = SessionRepository(db)

    def get(self, key: str, default: Any = None) -> Any:
        value = self._repo.get(self.session_id, self.bag, key)
        return default if value is None else value

    def set(self, key: str, value: Any) -> None:
        self._repo.set(self.session_id, self.bag, key, value)


def get_session_context(request: Request, db: Session = Depends(get_db)) -> SessionContext:
    """FastAPI dependency: session handle for the current request."""
    session_id = getattr(request.state, "session_id", None)
    if not session_id:
        session_id = (
            request.headers.get(settings.session_header_name)
            or request.cookies.get(settings.session_cookie_name)
            or "anonymous"
        )
    return SessionContext(db, session_id)
