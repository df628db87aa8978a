"""Permission gate for the node tree.

This is the one place where node permission rules are defined:

    - Admins may do everything; ``allowed_roots()`` is None for them.
    - Everyone else works inside the subtrees of their node mounts, plus any
      roots temporarily granted for the current session.
    - Each action needs a capability flag (create / edit / delete).
    - Deleting a root node (mount root, top-level node, or node of type
      ``root``) additionally needs the ``root`` capability.

``TreeViewPolicy`` is the value object the list view applies instead of
mutating shared configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from ..core.session import ALLOWED_ROOTS_KEY
from ..models.node import NodeType
from .tree_walk import ROOT_PID, walk_ancestors

if TYPE_CHECKING:
    from ..core.auth import AuthContext
    from ..core.session import SessionContext
    from ..repositories.node_repository import NodeRepository

logger = logging.getLogger(__name__)


class Permission(str, Enum):
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    ROOT = "root"
    CONTENT = "content"


class Action(str, Enum):
    """Request action (the ``act`` parameter)."""

    SHOW = "show"
    CREATE = "create"
    EDIT = "edit"
    COPY = "copy"
    CUT = "cut"
    PASTE = "paste"
    DELETE = "delete"
    EDIT_ALL = "editAll"
    DELETE_ALL = "deleteAll"
    OVERRIDE_ALL = "overrideAll"

    @property
    def required_permission(self) -> Optional[Permission]:
        return _ACTION_PERMISSIONS.get(self)


_ACTION_PERMISSIONS: Dict[Action, Permission] = {
    Action.CREATE: Permission.CREATE,
    Action.COPY: Permission.CREATE,
    Action.EDIT: Permission.EDIT,
    Action.CUT: Permission.EDIT,
    Action.EDIT_ALL: Permission.EDIT,
    Action.OVERRIDE_ALL: Permission.EDIT,
    Action.DELETE: Permission.DELETE,
    Action.DELETE_ALL: Permission.DELETE,
}

_ROOT_GUARDED_ACTIONS = frozenset({Action.DELETE, Action.DELETE_ALL})


@dataclass(frozen=True)
class TreeViewPolicy:
    """How the tree list view must be restricted for the current user."""

    closed: bool = False
    not_copyable: bool = False
    not_editable: bool = False
    not_deletable: bool = False
    root_ids: Optional[Tuple[int, ...]] = None
    root_paste: bool = False
    switch_to_edit: bool = False


class PermissionChecker:
    """Answers permission questions for one user during one request."""

    def __init__(
        self,
        auth: AuthContext,
        nodes: NodeRepository,
        session: Optional[SessionContext] = None,
    ):
        self.auth = auth
        self.nodes = nodes
        self.session = session
        self._node_cache: Dict[int, bool] = {}

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    def is_admin(self) -> bool:
        return self.auth.is_admin

    def has_permission(self, permission: Permission) -> bool:
        if self.is_admin():
            return True
        return permission.value in self.auth.permissions

    # ------------------------------------------------------------------
    # Scope
    # ------------------------------------------------------------------

    def allowed_roots(self) -> Optional[List[int]]:
        """Node ids whose subtrees the user may access, or None if unrestricted."""
        if self.is_admin():
            return None

        roots = [int(node_id) for node_id in self.auth.mounts]
        for node_id in self._session_roots():
            if node_id not in roots:
                roots.append(node_id)
        return roots

    def is_allowed_node(self, node_id: int) -> bool:
        """True if *node_id* lies inside one of the allowed subtrees."""
        if self.is_admin():
            return True

        node_id = int(node_id)
        if node_id in self._node_cache:
            return self._node_cache[node_id]

        roots = set(self.allowed_roots() or [])
        allowed = False
        if roots:
            walk = walk_ancestors(
                node_id,
                self.nodes.get_by_id_optional,
                stop_after=lambda node: node.id in roots,
                stop_at_root_type=False,
            )
            allowed = any(i in roots for i in walk.ids)

        self._node_cache[node_id] = allowed
        return allowed

    def is_root_node(self, node) -> bool:
        roots = self.allowed_roots() or []
        return (
            int(node.pid or 0) == ROOT_PID
            or node.type == NodeType.ROOT.value
            or node.id in roots
        )

    def is_allowed(self, node_id: int, action: Action) -> bool:
        """Whether the user may perform *action* on *node_id*."""
        if self.is_admin():
            return True

        required = action.required_permission
        if required is not None and not self.has_permission(required):
            return False

        if not self.is_allowed_node(node_id):
            return False

        if action in _ROOT_GUARDED_ACTIONS and not self.has_permission(Permission.ROOT):
            node = self.nodes.get_by_id_optional(int(node_id))
            if node is not None and self.is_root_node(node):
                return False

        return True

    def filter_allowed(self, ids: Iterable[int], action: Action) -> List[int]:
        """Subset of *ids* the user may act on, in input order, without duplicates."""
        result: List[int] = []
        for node_id in ids:
            node_id = int(node_id)
            if node_id not in result and self.is_allowed(node_id, action):
                result.append(node_id)
        return result

    def has_mount_access(self, ids) -> bool:
        """Host mount check: True if any of *ids* is one of the user's roots."""
        if self.is_admin():
            return True
        if isinstance(ids, int):
            ids = [ids]
        roots = set(self.allowed_roots() or [])
        return any(int(node_id) in roots for node_id in ids)

    def add_node_to_allowed_roots(self, node_id: int) -> None:
        """Allow *node_id* for the rest of the session. Never persisted."""
        if self.session is None or self.is_admin():
            return

        roots = self._session_roots()
        if int(node_id) in roots:
            return
        roots.append(int(node_id))
        self.session.set(ALLOWED_ROOTS_KEY, roots)
        self._node_cache.clear()
        logger.info(
            "Node temporarily added to allowed roots",
            extra={"user_id": self.auth.user_id, "node_id": int(node_id)},
        )

    # ------------------------------------------------------------------
    # View policy
    # ------------------------------------------------------------------

    def view_policy(self, record_id: Optional[int] = None) -> TreeViewPolicy:
        """Restrictions the tree view must apply for this user."""
        switch_to_edit = False
        if record_id and self.has_permission(Permission.CONTENT):
            node = self.nodes.get_by_id_optional(int(record_id))
            switch_to_edit = node is not None and node.type == NodeType.CONTENT.value

        if self.is_admin():
            return TreeViewPolicy(root_paste=True, switch_to_edit=switch_to_edit)

        can_create = self.has_permission(Permission.CREATE)
        return TreeViewPolicy(
            closed=not can_create,
            not_copyable=not can_create,
            not_editable=not self.has_permission(Permission.EDIT),
            not_deletable=not self.has_permission(Permission.DELETE),
            root_ids=tuple(self.allowed_roots() or ()),
            root_paste=self.has_permission(Permission.ROOT),
            switch_to_edit=switch_to_edit,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _session_roots(self) -> List[int]:
        if self.session is None:
            return []
        return [int(i) for i in self.session.get(ALLOWED_ROOTS_KEY, [])]
