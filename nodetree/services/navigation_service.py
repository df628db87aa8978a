"""Navigator: the session-backed "current node" pointer and its breadcrumb.

State machine::

    Unset(0) --select(n)--> Positioned(n) --select(m)--> Positioned(m)
    Positioned(n) --walk fails (missing / not mounted)--> Unset(0)

A walk failure is resolved within the same request: the stored position is
reset before the response is produced, so the user is never left pointing at
an inaccessible node.
"""

import logging
import re
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.session import CURRENT_NODE_KEY, SessionContext
from ..exceptions import InsecurePathError, NotMountedError
from ..models.node import NodeType
from ..repositories.base import MAX_ENTITY_ID
from ..repositories.node_repository import NodeRepository
from ..schemas.navigation import (
    Breadcrumb,
    BreadcrumbEntry,
    NavigatorStateResponse,
    NavigatorStatus,
)
from .permission_service import PermissionChecker
from .tree_walk import is_insecure_path, walk_ancestors

logger = logging.getLogger(__name__)


def node_icon(node_type: str) -> str:
    if node_type == NodeType.CONTENT.value:
        return settings.content_icon
    return settings.folder_icon


def select_link(node_id: int) -> str:
    """Link target that makes *node_id* the current node."""
    return f"?{settings.navigation_param}={node_id}"


def _clamp_node_id(value: int) -> int:
    """Negative ids become 0, as do ids no node row can hold."""
    if value > MAX_ENTITY_ID:
        return 0
    return max(value, 0)


def strip_select_param(url: str) -> str:
    """Remove the select parameter from *url* so a reload does not re-select."""
    param = re.escape(settings.navigation_param)
    url = re.sub(rf"([?&]){param}=[^&]*&", r"\1", url)
    url = re.sub(rf"[?&]{param}=[^&]*$", "", url)
    return url


class NavigatorService:
    """Tracks the user's position in the tree for one session and tree table.

    Public methods:
        select           -- validate and store a new position
        current_node_id  -- stored position (0 = unset)
        state            -- unset / positioned
        reset            -- back to unset
        breadcrumb       -- root-first path to the current node
    """

    def __init__(self, db: Session, session: SessionContext, checker: PermissionChecker):
        self.db = db
        self.session = session
        self.checker = checker
        self.nodes = NodeRepository(db)

    def select(self, raw_value: str) -> int:
        """Store a position from a raw request token. Returns the stored id.

        Non-numeric or out-of-range tokens select nothing (the position
        becomes unset).
        """
        token = str(raw_value)
        if is_insecure_path(token):
            raise InsecurePathError(token)

        try:
            node_id = _clamp_node_id(int(token.strip()))
        except ValueError:
            node_id = 0

        self.session.set(CURRENT_NODE_KEY, node_id)
        logger.debug("Navigator positioned", extra={"node_id": node_id})
        return node_id

    def current_node_id(self) -> int:
        value = self.session.get(CURRENT_NODE_KEY, 0)
        if is_insecure_path(str(value)):
            raise InsecurePathError(str(value))
        try:
            return _clamp_node_id(int(value))
        except (TypeError, ValueError):
            return 0

    def state(self) -> NavigatorStateResponse:
        node_id = self.current_node_id()
        status = NavigatorStatus.POSITIONED if node_id > 0 else NavigatorStatus.UNSET
        return NavigatorStateResponse(status=status, current_node_id=node_id)

    def reset(self) -> None:
        self.session.set(CURRENT_NODE_KEY, 0)

    def breadcrumb(self) -> Optional[Breadcrumb]:
        """Build the breadcrumb for the current node.

        Returns None when unset, or when the selected node no longer exists
        (the position is reset). Raises NotMountedError, after resetting, when
        the path lies outside the user's mounts.
        """
        node_id = self.current_node_id()
        if node_id < 1:
            return None

        is_admin = self.checker.is_admin()
        walk = walk_ancestors(
            node_id,
            self.nodes.get_by_id_optional,
            # Ancestors above a mounted node are not shown to the user.
            stop_after=None if is_admin else (lambda node: self.checker.has_mount_access([node.id])),
        )

        if not walk.start_found:
            logger.info("Selected node no longer exists; navigator reset", extra={"node_id": node_id})
            self.reset()
            return None

        if walk.broken:
            logger.warning(
                "Broken parent chain while building breadcrumb",
                extra={"node_id": node_id, "path": walk.ids},
            )

        if not self.checker.has_mount_access(walk.ids):
            self.reset()
            raise NotMountedError(node_id)

        entries: List[BreadcrumbEntry] = [
            BreadcrumbEntry(
                node_id=0,
                label=settings.breadcrumb_root_label,
                icon=settings.tree_icon,
                link=select_link(0),
            )
        ]
        for node in reversed(walk.nodes):
            active = node.id == node_id
            entries.append(
                BreadcrumbEntry(
                    node_id=node.id,
                    label=node.name,
                    icon=node_icon(node.type),
                    link=None if active else select_link(node.id),
                    active=active,
                )
            )

        return Breadcrumb(current_node_id=node_id, entries=entries, root_ids=[node_id])
