"""Per-request collaborators shared by the routers."""

from typing import List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..core.session import SessionContext, get_session_context
from ..database import get_db
from ..exceptions import ValidationError
from ..repositories.node_repository import NodeRepository
from ..schemas.navigation import ClipboardMode, ClipboardRef
from ..services.permission_service import PermissionChecker


def get_checker(
    auth: AuthContext = Depends(require_auth),
    db: Session = Depends(get_db),
    session: SessionContext = Depends(get_session_context),
) -> PermissionChecker:
    return PermissionChecker(auth, NodeRepository(db), session)


def parse_clipboard(mode: Optional[ClipboardMode], ids: Optional[str]) -> Optional[ClipboardRef]:
    """Build a ClipboardRef from ``clipboard_mode`` / comma-separated ``clipboard_ids``."""
    if mode is None:
        return None
    parsed: List[int] = []
    for part in (ids or "").split(","):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise ValidationError(f"Invalid clipboard id: {part!r}", field="clipboard_ids")
        parsed.append(int(part))
    if not parsed:
        raise ValidationError("Clipboard ids are required with a clipboard mode", field="clipboard_ids")
    return ClipboardRef(mode=mode, ids=parsed)
