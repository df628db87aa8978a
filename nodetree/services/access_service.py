"""Request gate run before any tree action is executed.

Scrubs the session's bulk working id set and rejects single-node actions
outside the user's scope. Nodes the user created in this session can be
temporarily allowed for editing (``settings.allow_new_record_grants``).
"""

import logging
from typing import List, Optional

from ..core.config import settings
from ..core.session import CURRENT_IDS_KEY, NEW_RECORDS_KEY, SessionContext
from ..exceptions import AccessDeniedError
from .permission_service import Action, PermissionChecker

logger = logging.getLogger(__name__)

_SINGLE_NODE_ACTIONS = frozenset({Action.EDIT, Action.COPY, Action.DELETE, Action.SHOW})


class AccessService:
    """Applies the permission gate to the incoming request."""

    def __init__(self, checker: PermissionChecker, session: SessionContext):
        self.checker = checker
        self.session = session

    def check_request(self, action: Optional[Action], node_id: Optional[int] = None) -> None:
        """Raise AccessDeniedError if *action* on *node_id* is outside the user's scope."""
        if self.checker.is_admin():
            return

        self.scrub_selection(action)

        if action is None or action == Action.PASTE or node_id is None:
            return

        if action == Action.EDIT and not self.checker.is_allowed_node(node_id):
            self._grant_if_new_record(node_id)

        if action in _SINGLE_NODE_ACTIONS and not self.checker.is_allowed_node(node_id):
            logger.warning(
                "Node action denied",
                extra={"user_id": self.checker.auth.user_id, "action": action.value, "node_id": node_id},
            )
            raise AccessDeniedError(
                f"Not enough permissions to {action.value} node ID {node_id}.",
                details={"action": action.value, "node_id": node_id},
            )

    def scrub_selection(self, action: Optional[Action]) -> List[int]:
        """Drop ids from the session's working set that the user may not act on."""
        current = self.session.get(CURRENT_IDS_KEY)
        if not isinstance(current, list):
            return []

        scrub_action = Action.DELETE if action == Action.DELETE_ALL else Action.EDIT
        allowed = self.checker.filter_allowed(current, scrub_action)
        if allowed != current:
            logger.info(
                "Working set scrubbed",
                extra={"dropped": [i for i in current if i not in allowed], "action": scrub_action.value},
            )
            self.session.set(CURRENT_IDS_KEY, allowed)
        return allowed

    def _grant_if_new_record(self, node_id: int) -> None:
        if not settings.allow_new_record_grants:
            return
        new_records = [int(i) for i in self.session.get(NEW_RECORDS_KEY, [])]
        if int(node_id) in new_records:
            self.checker.add_node_to_allowed_roots(node_id)
