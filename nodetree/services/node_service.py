"""Deep module for node operations: show, create, edit, copy, move, delete, tree.

Every operation runs through the permission gate. Callers never touch sorting
values, descendant sets, or the session's new-record list themselves.
"""

import logging
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from babel import Locale
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.session import CURRENT_IDS_KEY, NEW_RECORDS_KEY, SessionContext
from ..exceptions import AccessDeniedError, ValidationError
from ..models.node import Node, NodeType
from ..repositories.node_repository import NodeRepository
from ..schemas.navigation import ClipboardRef
from ..schemas.node import (
    NodeCopyRequest,
    NodeCreate,
    NodeLabel,
    NodeMoveRequest,
    NodeUpdate,
    TreeNode,
)
from .access_service import AccessService
from .button_policy import button_states
from .navigation_service import node_icon, select_link
from .permission_service import Action, Permission, PermissionChecker, TreeViewPolicy
from .tree_walk import ROOT_PID

SORTING_STEP = 128
PASTE_AFTER = 1

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def _language_names(locale: str) -> Dict[str, str]:
    return dict(Locale.parse(locale).languages)


def language_options() -> Dict[str, str]:
    """Language code -> display name, sorted by name."""
    names = _language_names(settings.language_locale)
    return dict(sorted(names.items(), key=lambda item: item[1].lower()))


class NodeService:
    """All node operations behind a simple interface.

    Public methods:
        get_node          -- show one node
        create_node       -- create under a parent (or top level)
        update_node       -- edit name / type / languages / sorting
        delete_node       -- delete a node and its subtree
        copy_node         -- copy after / into a target, optionally with children
        move_node         -- paste a cut node after / into a target
        get_tree          -- nested TreeNode list with button states
        label             -- display label of one node
        set_selection / get_selection / delete_selection -- bulk working set
    """

    def __init__(self, db: Session, checker: PermissionChecker, session: SessionContext):
        self.db = db
        self.checker = checker
        self.session = session
        self.repo = NodeRepository(db)

    # ------------------------------------------------------------------
    # Single node operations
    # ------------------------------------------------------------------

    def get_node(self, node_id: int) -> Node:
        node = self.repo.get_by_id(node_id)
        self._require(node_id, Action.SHOW)
        return node

    def create_node(self, data: NodeCreate) -> Node:
        if not self.checker.has_permission(Permission.CREATE):
            raise AccessDeniedError("Not enough permissions to create nodes.")
        self._check_parent(data.pid)

        node = Node(
            pid=data.pid,
            type=data.type.value,
            name=data.name,
            languages=",".join(data.languages) or None,
            sorting=data.sorting or self.repo.next_sorting(data.pid),
        )
        self.repo.add(node)
        self.db.commit()
        self.db.refresh(node)

        self._remember_new_record(node.id)
        logger.info("Node created", extra={"node_id": node.id, "pid": node.pid, "type": node.type})
        return node

    def update_node(self, node_id: int, data: NodeUpdate) -> Node:
        node = self.repo.get_by_id(node_id)
        self._require(node_id, Action.EDIT)

        if data.type is not None and data.type == NodeType.CONTENT and self.repo.count_children(node.id) > 0:
            raise ValidationError("A node with children cannot become a content node", field="type")

        if data.name is not None:
            name = data.name.strip()
            if not name:
                raise ValidationError("Name cannot be empty", field="name")
            node.name = name
        if data.type is not None:
            node.type = data.type.value
        if data.languages is not None:
            node.languages = ",".join(data.languages) or None
        if data.sorting is not None:
            node.sorting = data.sorting

        self.db.commit()
        self.db.refresh(node)
        return node

    def delete_node(self, node_id: int) -> List[int]:
        """Delete *node_id* and every descendant. Returns the deleted ids."""
        self.repo.get_by_id(node_id)
        self._require(node_id, Action.DELETE)

        ids = [node_id] + self.repo.get_descendant_ids(node_id)
        self.repo.delete_many(ids)
        self.db.commit()

        logger.info("Node deleted", extra={"node_id": node_id, "affected": len(ids)})
        return ids

    def copy_node(self, node_id: int, request: NodeCopyRequest) -> Node:
        source = self.repo.get_by_id(node_id)
        self._require(node_id, Action.COPY)

        target_pid, after = self._resolve_target(request.pid, request.mode)
        if request.with_children and target_pid in [node_id] + self.repo.get_descendant_ids(node_id):
            raise ValidationError("Cannot copy a node into its own subtree", field="pid")

        clone = self._clone(source, target_pid)
        if request.with_children:
            self._clone_children(source.id, clone.id)
        self._place(clone, after)
        self.db.commit()
        self.db.refresh(clone)

        self._remember_new_record(clone.id)
        logger.info("Node copied", extra={"source_id": node_id, "node_id": clone.id, "with_children": request.with_children})
        return clone

    def move_node(self, node_id: int, request: NodeMoveRequest) -> Node:
        node = self.repo.get_by_id(node_id)
        self._require(node_id, Action.CUT)

        target_pid, after = self._resolve_target(request.pid, request.mode)
        if target_pid == node_id or target_pid in self.repo.get_descendant_ids(node_id):
            raise ValidationError("Cannot move a node into itself or its own descendant", field="pid")
        if after is not None and after.id == node_id:
            raise ValidationError("Cannot paste a node after itself", field="pid")

        node.pid = target_pid
        self._place(node, after)
        self.db.commit()
        self.db.refresh(node)
        logger.info("Node moved", extra={"node_id": node_id, "pid": target_pid})
        return node

    # ------------------------------------------------------------------
    # Tree and labels
    # ------------------------------------------------------------------

    def label(self, node: Node) -> NodeLabel:
        names = _language_names(settings.language_locale)
        return NodeLabel(
            icon=node_icon(node.type),
            name=node.name,
            link=select_link(node.id),
            languages=[names.get(code, code) for code in node.language_list],
        )

    def get_tree(
        self,
        policy: TreeViewPolicy,
        root_ids: Optional[Sequence[int]] = None,
        clipboard: Optional[ClipboardRef] = None,
    ) -> List[TreeNode]:
        """Nested tree below *root_ids* (default: the policy's roots, else top level)."""
        nodes = self.db.query(Node).order_by(Node.sorting, Node.id).all()
        child_counts = self.repo.child_counts()

        by_id: Dict[int, Node] = {n.id: n for n in nodes}
        children_by_parent: Dict[int, List[Node]] = {}
        for n in nodes:
            children_by_parent.setdefault(int(n.pid or 0), []).append(n)

        if root_ids is None:
            root_ids = policy.root_ids
        if root_ids is None:
            roots = children_by_parent.get(ROOT_PID, [])
        else:
            roots = [by_id[i] for i in root_ids if i in by_id]
        # Mount roots, independent of the rendered subtree.
        mount_root_ids = list(policy.root_ids or ())

        cut_ids = set(clipboard.ids) if clipboard is not None else set()

        def build(node: Node, inside_cut: bool, path: set) -> TreeNode:
            children = children_by_parent.get(node.id, [])
            child_nodes = [
                build(child, inside_cut or node.id in cut_ids, path | {node.id})
                for child in children
                if child.id not in path
            ]
            return TreeNode(
                id=node.id,
                pid=int(node.pid or 0),
                name=node.name,
                type=node.type,
                label=self.label(node),
                buttons=button_states(
                    node,
                    self.checker,
                    policy,
                    child_count=child_counts.get(node.id, 0),
                    clipboard=clipboard,
                    root_ids=mount_root_ids,
                    circular=inside_cut,
                ),
                children=child_nodes,
            )

        return [build(root, False, set()) for root in roots]

    # ------------------------------------------------------------------
    # Bulk working set
    # ------------------------------------------------------------------

    def set_selection(self, ids: Sequence[int]) -> List[int]:
        selection: List[int] = []
        for node_id in ids:
            if int(node_id) not in selection:
                selection.append(int(node_id))
        self.session.set(CURRENT_IDS_KEY, selection)
        return selection

    def get_selection(self) -> List[int]:
        value = self.session.get(CURRENT_IDS_KEY, [])
        return [int(i) for i in value] if isinstance(value, list) else []

    def delete_selection(self) -> List[int]:
        """Delete the scrubbed working set. Returns the selected ids actually deleted."""
        allowed = AccessService(self.checker, self.session).scrub_selection(Action.DELETE_ALL)
        deleted: List[int] = []
        gone: set = set()
        for node_id in allowed:
            if node_id in gone or self.repo.get_by_id_optional(node_id) is None:
                continue
            removed = self.delete_node(node_id)
            gone.update(removed)
            deleted.append(node_id)

        self.session.set(CURRENT_IDS_KEY, [])
        return deleted

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require(self, node_id: int, action: Action) -> None:
        if not self.checker.is_allowed(node_id, action):
            raise AccessDeniedError(
                f"Not enough permissions to {action.value} node ID {node_id}.",
                details={"action": action.value, "node_id": node_id},
            )

    def _check_parent(self, pid: int) -> None:
        """A new child may go under *pid*: top level needs ROOT, content nodes are leaves."""
        if pid == ROOT_PID:
            if not self.checker.has_permission(Permission.ROOT):
                raise AccessDeniedError("Not enough permissions to create top-level nodes.")
            return

        parent = self.repo.get_by_id_optional(pid)
        if parent is None:
            raise ValidationError(f"Parent node not found: {pid}", field="pid")
        if parent.type == NodeType.CONTENT.value:
            raise ValidationError("Content nodes cannot have children", field="pid")
        if not self.checker.is_allowed_node(pid):
            raise AccessDeniedError(f"Not enough permissions to paste into node ID {pid}.")

    def _resolve_target(self, pid: int, mode: int):
        """Return ``(new_parent_id, sibling_to_follow_or_None)`` for a paste."""
        if mode == PASTE_AFTER:
            if pid == ROOT_PID:
                raise ValidationError("Cannot paste after the synthetic root", field="pid")
            target = self.repo.get_by_id_optional(pid)
            if target is None:
                raise ValidationError(f"Target node not found: {pid}", field="pid")
            new_pid = int(target.pid or 0)
            self._check_parent(new_pid)
            return new_pid, target

        self._check_parent(pid)
        return pid, None

    def _place(self, node: Node, after: Optional[Node]) -> None:
        if after is None:
            node.sorting = self.repo.next_sorting(node.pid)
            self.db.flush()
            return

        siblings = [s for s in self.repo.get_children(after.pid) if s.id != node.id]
        ordered: List[Node] = []
        for sibling in siblings:
            ordered.append(sibling)
            if sibling.id == after.id:
                ordered.append(node)
        for index, sibling in enumerate(ordered, start=1):
            sibling.sorting = index * SORTING_STEP
        self.db.flush()

    def _clone(self, source: Node, pid: int) -> Node:
        return self.repo.add(Node(
            pid=pid,
            type=source.type,
            name=source.name,
            languages=source.languages,
            sorting=source.sorting,
        ))

    def _clone_children(self, source_id: int, clone_id: int) -> None:
        for child in self.repo.get_children(source_id):
            copy = self._clone(child, clone_id)
            self._clone_children(child.id, copy.id)

    def _remember_new_record(self, node_id: int) -> None:
        new_records = [int(i) for i in self.session.get(NEW_RECORDS_KEY, [])]
        if node_id not in new_records:
            new_records.append(node_id)
            self.session.set(NEW_RECORDS_KEY, new_records)
